"""
Task committer.

Creates the Todoist task, marks the email handled in Gmail, then writes the
processed record. Only task creation can fail the commit: once a task exists
the email must never be retried, so Gmail problems are logged and ignored.
"""

from shootingstar.core.database import Database
from shootingstar.core.errors import CommitError
from shootingstar.core.logging import get_logger
from shootingstar.core.models import (
    ExtractionResult,
    Item,
    ProcessedRecord,
    ProcessingMode,
    TrackerTask,
)
from shootingstar.labels.validator import validate_task_format
from shootingstar.services.gmail import GmailClient
from shootingstar.services.todoist import TodoistClient

log = get_logger(__name__)


def compose_description(sender: str, subject: str, notes: str | None, source_link: str) -> str:
    """Task description linking back to the source email."""
    return "\n".join([
        f"From: {sender}",
        f"Subject: {subject}",
        "",
        notes or "",
        "",
        f"Original email: {source_link}",
    ])


class TaskCommitter:
    """Commits extracted tasks exactly once per email."""

    def __init__(self, db: Database, gmail: GmailClient, todoist: TodoistClient):
        self.db = db
        self.gmail = gmail
        self.todoist = todoist

    def create_task(self, item: Item, result: ExtractionResult) -> TrackerTask:
        """Create the tracker task. Raises CommitError on any tracker failure."""
        check = validate_task_format(result.task_title)
        if check.warnings:
            log.warning("task_format_warnings", task=result.task_title, warnings=check.warnings)

        try:
            return self.todoist.create_task(
                content=result.task_title,
                description=compose_description(item.sender, item.subject, result.notes, item.source_link),
                label_ids=result.label_ids,
                due_string=result.due_string,
            )
        except Exception as e:
            raise CommitError(f"Failed to create Todoist task: {e}", item_id=item.id) from e

    def mark_handled(self, item: Item) -> None:
        """Label the email as processed and unstar it. Best effort."""
        try:
            self.gmail.label_item(item.id)
        except Exception as e:
            log.warning("gmail_label_failed", item_id=item.id, error=str(e))

        try:
            self.gmail.unstar_item(item.id)
        except Exception as e:
            log.warning("gmail_unstar_failed", item_id=item.id, error=str(e))

    def record(self, item: Item, result: ExtractionResult, task: TrackerTask, mode: ProcessingMode) -> int:
        return self.db.record_processed(ProcessedRecord(
            item_id=item.id,
            external_task_id=task.id,
            task_title=result.task_title,
            label_ids=list(result.label_ids),
            mode=mode,
            thread_id=item.thread_id or None,
            sender=item.sender or None,
            subject=item.subject or None,
        ))

    def commit(self, item: Item, result: ExtractionResult, mode: ProcessingMode = ProcessingMode.AUTO) -> str:
        """
        Commit a task for an email.

        Args:
            item: Source email
            result: Extraction result with normalized labels
            mode: How the task was produced

        Returns:
            Todoist task ID

        Raises:
            CommitError: If the task could not be created; nothing is recorded
        """
        task = self.create_task(item, result)
        self.mark_handled(item)
        self.record(item, result, task, mode)

        log.info("task_committed", item_id=item.id, task_id=task.id, mode=mode.value)
        return task.id
