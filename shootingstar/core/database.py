"""
Database repository for pipeline state.

Holds the dedup ledger (processed emails and pending reviews), the automation
state key/value table, the error log and the stored Gmail OAuth tokens.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Json

from shootingstar.config import settings
from shootingstar.core.errors import ConflictError
from shootingstar.core.logging import get_logger
from shootingstar.core.models import (
    ErrorRecord,
    PendingReview,
    ProcessedRecord,
    ProcessingMode,
    ReviewStatus,
)

log = get_logger(__name__)

# automation_state keys
STATE_RUNNING = "running"
STATE_LAST_RUN = "last_run"
STATE_TRIGGER = "trigger_run"
STATE_AUTH_URL = "auth_url"


class Database:
    """PostgreSQL operations for pipeline state."""

    def __init__(self, connection_string: str | None = None):
        """
        Initialize database handle.

        Args:
            connection_string: PostgreSQL connection URL. Uses settings if not provided.
        """
        self.connection_string = connection_string or settings.database_url

    @contextmanager
    def get_connection(self) -> Generator[psycopg.Connection, None, None]:
        """Get a database connection as a context manager."""
        conn = psycopg.connect(self.connection_string, row_factory=dict_row)
        try:
            yield conn
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Initialize database schema (create tables if not exist)."""
        schema_sql = """
        -- automation_state: running flag, last run, one-shot trigger
        CREATE TABLE IF NOT EXISTS automation_state (
            key VARCHAR(64) PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMPTZ DEFAULT NOW()
        );

        -- processed_emails: one row per email that has a Todoist task
        CREATE TABLE IF NOT EXISTS processed_emails (
            id SERIAL PRIMARY KEY,
            gmail_id VARCHAR(255) UNIQUE NOT NULL,
            thread_id VARCHAR(255),
            sender TEXT,
            subject TEXT,
            task_title TEXT,
            todoist_task_id VARCHAR(64),
            labels JSONB,
            processing_mode VARCHAR(16) DEFAULT 'auto',
            processed_at TIMESTAMPTZ DEFAULT NOW()
        );

        CREATE INDEX IF NOT EXISTS idx_processed_at ON processed_emails(processed_at DESC);

        -- pending_reviews: human-in-the-loop queue
        CREATE TABLE IF NOT EXISTS pending_reviews (
            id SERIAL PRIMARY KEY,
            gmail_id VARCHAR(255) UNIQUE NOT NULL,
            thread_id VARCHAR(255),
            sender TEXT,
            subject TEXT,
            body TEXT,
            gmail_link TEXT,
            status VARCHAR(16) DEFAULT 'pending',
            created_at TIMESTAMPTZ DEFAULT NOW(),
            completed_at TIMESTAMPTZ
        );

        CREATE INDEX IF NOT EXISTS idx_pending_status ON pending_reviews(status);

        -- error_log: append-only
        CREATE TABLE IF NOT EXISTS error_log (
            id SERIAL PRIMARY KEY,
            error_type VARCHAR(64),
            message TEXT,
            email_id VARCHAR(255),
            stack TEXT,
            created_at TIMESTAMPTZ DEFAULT NOW()
        );

        CREATE INDEX IF NOT EXISTS idx_errors_created ON error_log(created_at DESC);

        -- oauth_tokens: written by the OAuth callback, read by the Gmail client
        CREATE TABLE IF NOT EXISTS oauth_tokens (
            provider VARCHAR(32) PRIMARY KEY,
            access_token TEXT,
            refresh_token TEXT,
            expiry TEXT,
            updated_at TIMESTAMPTZ DEFAULT NOW()
        );

        -- Automation starts stopped on first boot only
        INSERT INTO automation_state (key, value) VALUES ('running', 'false')
        ON CONFLICT (key) DO NOTHING;
        """

        with self.get_connection() as conn:
            conn.execute(schema_sql)
            conn.commit()
            log.info("database_schema_initialized")

    # ------------------------------------------------------------------
    # Dedup ledger
    # ------------------------------------------------------------------

    def is_handled(self, item_id: str) -> bool:
        """Check if the email already has a processed record."""
        with self.get_connection() as conn:
            result = conn.execute(
                "SELECT 1 FROM processed_emails WHERE gmail_id = %s LIMIT 1",
                (item_id,)
            ).fetchone()
            return result is not None

    def is_pending_review(self, item_id: str) -> bool:
        """Check if the email is waiting in the review queue."""
        with self.get_connection() as conn:
            result = conn.execute(
                "SELECT 1 FROM pending_reviews WHERE gmail_id = %s AND status = %s LIMIT 1",
                (item_id, ReviewStatus.PENDING.value)
            ).fetchone()
            return result is not None

    def record_processed(self, record: ProcessedRecord) -> int:
        """
        Insert a processed record.

        Raises:
            ConflictError: If the email already has a processed record
        """
        sql = """
        INSERT INTO processed_emails (
            gmail_id, thread_id, sender, subject, task_title,
            todoist_task_id, labels, processing_mode
        ) VALUES (
            %(gmail_id)s, %(thread_id)s, %(sender)s, %(subject)s, %(task_title)s,
            %(todoist_task_id)s, %(labels)s, %(processing_mode)s
        )
        ON CONFLICT (gmail_id) DO NOTHING
        RETURNING id
        """

        params = {
            "gmail_id": record.item_id,
            "thread_id": record.thread_id,
            "sender": record.sender,
            "subject": record.subject,
            "task_title": record.task_title,
            "todoist_task_id": record.external_task_id,
            "labels": Json(list(record.label_ids)),
            "processing_mode": record.mode.value,
        }

        with self.get_connection() as conn:
            result = conn.execute(sql, params).fetchone()
            conn.commit()

        if not result:
            raise ConflictError(record.item_id)

        log.info(
            "processed_record_inserted",
            gmail_id=record.item_id,
            todoist_task_id=record.external_task_id,
            mode=record.mode.value,
        )
        return result["id"]

    def record_pending_review(self, review: PendingReview) -> bool:
        """
        Queue an email for human review if it is not already queued.

        Returns:
            True if a row was inserted, False if one already existed
        """
        sql = """
        INSERT INTO pending_reviews (
            gmail_id, thread_id, sender, subject, body, gmail_link
        ) VALUES (
            %(gmail_id)s, %(thread_id)s, %(sender)s, %(subject)s, %(body)s, %(gmail_link)s
        )
        ON CONFLICT (gmail_id) DO NOTHING
        RETURNING id
        """

        with self.get_connection() as conn:
            result = conn.execute(sql, {
                "gmail_id": review.item_id,
                "thread_id": review.thread_id,
                "sender": review.sender,
                "subject": review.subject,
                "body": review.body,
                "gmail_link": review.source_link,
            }).fetchone()
            conn.commit()

        if result:
            log.info("pending_review_inserted", gmail_id=review.item_id, review_id=result["id"])
            return True
        return False

    def get_pending_review(self, review_id: int) -> PendingReview | None:
        """Fetch a single review by its surrogate ID."""
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM pending_reviews WHERE id = %s",
                (review_id,)
            ).fetchone()
            return self._row_to_review(row) if row else None

    def list_pending_reviews(
        self,
        status: ReviewStatus = ReviewStatus.PENDING,
        limit: int = 100,
    ) -> list[PendingReview]:
        """List reviews with the given status, newest first."""
        with self.get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM pending_reviews
                WHERE status = %s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (status.value, limit)
            ).fetchall()
            return [self._row_to_review(row) for row in rows]

    def resolve_pending_review(self, review_id: int, status: ReviewStatus) -> bool:
        """
        Move a pending review to a terminal status.

        Returns:
            True if the review was pending and is now resolved
        """
        if status == ReviewStatus.PENDING:
            raise ValueError("Reviews can only be resolved to completed or skipped")

        sql = """
        UPDATE pending_reviews
        SET status = %s, completed_at = NOW()
        WHERE id = %s AND status = %s
        """

        with self.get_connection() as conn:
            cursor = conn.execute(sql, (status.value, review_id, ReviewStatus.PENDING.value))
            conn.commit()
            resolved = cursor.rowcount > 0

        log.info("pending_review_resolved", review_id=review_id, status=status.value, resolved=resolved)
        return resolved

    def list_processed(self, limit: int = 20) -> list[ProcessedRecord]:
        """Most recently processed emails."""
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM processed_emails ORDER BY processed_at DESC LIMIT %s",
                (limit,)
            ).fetchall()

            return [
                ProcessedRecord(
                    id=row["id"],
                    item_id=row["gmail_id"],
                    external_task_id=row["todoist_task_id"] or "",
                    task_title=row["task_title"] or "",
                    label_ids=row["labels"] or [],
                    mode=ProcessingMode(row["processing_mode"] or "auto"),
                    thread_id=row["thread_id"],
                    sender=row["sender"],
                    subject=row["subject"],
                    processed_at=row["processed_at"],
                )
                for row in rows
            ]

    # ------------------------------------------------------------------
    # Error log
    # ------------------------------------------------------------------

    def add_error(self, record: ErrorRecord) -> int:
        """Append an entry to the error log."""
        sql = """
        INSERT INTO error_log (error_type, message, email_id, stack)
        VALUES (%s, %s, %s, %s)
        RETURNING id
        """

        with self.get_connection() as conn:
            result = conn.execute(sql, (
                record.kind,
                record.message,
                record.item_id,
                record.trace,
            )).fetchone()
            conn.commit()
            return result["id"] if result else 0

    def list_errors(self, limit: int = 20) -> list[ErrorRecord]:
        """Most recent error log entries."""
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM error_log ORDER BY created_at DESC LIMIT %s",
                (limit,)
            ).fetchall()

            return [
                ErrorRecord(
                    id=row["id"],
                    kind=row["error_type"] or "UNKNOWN",
                    message=row["message"] or "",
                    item_id=row["email_id"],
                    trace=row["stack"],
                    created_at=row["created_at"],
                )
                for row in rows
            ]

    # ------------------------------------------------------------------
    # Automation state
    # ------------------------------------------------------------------

    def get_state(self, key: str) -> str | None:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM automation_state WHERE key = %s",
                (key,)
            ).fetchone()
            return row["value"] if row else None

    def set_state(self, key: str, value: str) -> None:
        sql = """
        INSERT INTO automation_state (key, value, updated_at)
        VALUES (%s, %s, NOW())
        ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
        """

        with self.get_connection() as conn:
            conn.execute(sql, (key, value))
            conn.commit()

    def delete_state(self, key: str) -> None:
        with self.get_connection() as conn:
            conn.execute("DELETE FROM automation_state WHERE key = %s", (key,))
            conn.commit()

    def consume_state(self, key: str) -> str | None:
        """Atomically read and delete a state key."""
        with self.get_connection() as conn:
            row = conn.execute(
                "DELETE FROM automation_state WHERE key = %s RETURNING value",
                (key,)
            ).fetchone()
            conn.commit()
            return row["value"] if row else None

    def is_running(self) -> bool:
        return self.get_state(STATE_RUNNING) == "true"

    def set_running(self, running: bool) -> None:
        self.set_state(STATE_RUNNING, "true" if running else "false")

    def get_last_run(self) -> str | None:
        return self.get_state(STATE_LAST_RUN)

    def set_last_run(self, when: datetime | None = None) -> None:
        when = when or datetime.now(timezone.utc)
        self.set_state(STATE_LAST_RUN, when.isoformat())

    def request_trigger(self) -> None:
        self.set_state(STATE_TRIGGER, datetime.now(timezone.utc).isoformat())

    def consume_trigger(self) -> bool:
        """Clear the one-shot trigger flag; True if it was set."""
        return self.consume_state(STATE_TRIGGER) is not None

    # ------------------------------------------------------------------
    # OAuth tokens
    # ------------------------------------------------------------------

    def get_oauth_token(self, provider: str) -> dict[str, Any] | None:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT access_token, refresh_token, expiry FROM oauth_tokens WHERE provider = %s",
                (provider,)
            ).fetchone()
            return dict(row) if row else None

    def set_oauth_token(
        self,
        provider: str,
        access_token: str,
        refresh_token: str,
        expiry: str = "",
    ) -> None:
        sql = """
        INSERT INTO oauth_tokens (provider, access_token, refresh_token, expiry, updated_at)
        VALUES (%s, %s, %s, %s, NOW())
        ON CONFLICT (provider) DO UPDATE SET
            access_token = EXCLUDED.access_token,
            refresh_token = EXCLUDED.refresh_token,
            expiry = EXCLUDED.expiry,
            updated_at = NOW()
        """

        with self.get_connection() as conn:
            conn.execute(sql, (provider, access_token, refresh_token, expiry))
            conn.commit()
            log.info("oauth_token_stored", provider=provider)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Counts shown on the status endpoint."""
        sql = """
        SELECT
            (SELECT COUNT(*) FROM processed_emails
             WHERE processed_at > NOW() - INTERVAL '1 day') AS processed_24h,
            (SELECT COUNT(*) FROM error_log
             WHERE created_at > NOW() - INTERVAL '1 day') AS errors_24h,
            (SELECT COUNT(*) FROM pending_reviews
             WHERE status = 'pending') AS pending_reviews
        """

        with self.get_connection() as conn:
            row = conn.execute(sql).fetchone()
            return dict(row) if row else {}

    @staticmethod
    def _row_to_review(row: dict[str, Any]) -> PendingReview:
        return PendingReview(
            id=row["id"],
            item_id=row["gmail_id"],
            thread_id=row["thread_id"],
            sender=row["sender"],
            subject=row["subject"],
            body=row["body"],
            source_link=row["gmail_link"],
            status=ReviewStatus(row["status"]),
            created_at=row["created_at"],
            completed_at=row["completed_at"],
        )
