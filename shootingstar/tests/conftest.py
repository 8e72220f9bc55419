"""
Shared pytest fixtures for shootingstar tests.
"""

import itertools
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from shootingstar.core.database import STATE_RUNNING, STATE_TRIGGER
from shootingstar.core.errors import ConflictError
from shootingstar.core.models import (
    ErrorRecord,
    Item,
    PendingReview,
    ProcessedRecord,
    ReviewStatus,
    TrackerTask,
)
from shootingstar.extractors.base import BaseExtractor
from shootingstar.labels.normalizer import LabelNormalizer
from shootingstar.labels.taxonomy import Label, LabelCategory, LabelTaxonomy
from shootingstar.processors.committer import TaskCommitter
from shootingstar.processors.cycle import ProcessingCycle
from shootingstar.processors.review import ReviewService


class InMemoryDatabase:
    """Dict-backed store with the same ledger/state interface as Database."""

    def __init__(self):
        self.processed: dict[str, ProcessedRecord] = {}
        self.reviews: dict[int, PendingReview] = {}
        self.errors: list[ErrorRecord] = []
        self.state: dict[str, str] = {}
        self.tokens: dict[str, dict] = {}
        self._ids = itertools.count(1)

    def init_schema(self) -> None:
        self.state.setdefault(STATE_RUNNING, "false")

    def is_handled(self, item_id: str) -> bool:
        return item_id in self.processed

    def is_pending_review(self, item_id: str) -> bool:
        return any(
            r.item_id == item_id and r.status == ReviewStatus.PENDING
            for r in self.reviews.values()
        )

    def record_processed(self, record: ProcessedRecord) -> int:
        if record.item_id in self.processed:
            raise ConflictError(record.item_id)
        record_id = next(self._ids)
        self.processed[record.item_id] = replace(
            record, id=record_id, processed_at=datetime.now(timezone.utc)
        )
        return record_id

    def record_pending_review(self, review: PendingReview) -> bool:
        if any(r.item_id == review.item_id for r in self.reviews.values()):
            return False
        review_id = next(self._ids)
        self.reviews[review_id] = replace(
            review, id=review_id, status=ReviewStatus.PENDING, created_at=datetime.now(timezone.utc)
        )
        return True

    def get_pending_review(self, review_id: int) -> PendingReview | None:
        return self.reviews.get(review_id)

    def list_pending_reviews(self, status=ReviewStatus.PENDING, limit: int = 100) -> list[PendingReview]:
        matching = [r for r in self.reviews.values() if r.status == status]
        return list(reversed(matching))[:limit]

    def resolve_pending_review(self, review_id: int, status: ReviewStatus) -> bool:
        if status == ReviewStatus.PENDING:
            raise ValueError("Cannot resolve a review back to pending")
        review = self.reviews.get(review_id)
        if review is None or review.status != ReviewStatus.PENDING:
            return False
        self.reviews[review_id] = replace(review, status=status, completed_at=datetime.now(timezone.utc))
        return True

    def list_processed(self, limit: int = 20) -> list[ProcessedRecord]:
        return list(reversed(list(self.processed.values())))[:limit]

    def add_error(self, record: ErrorRecord) -> int:
        record_id = next(self._ids)
        self.errors.append(replace(record, id=record_id, created_at=datetime.now(timezone.utc)))
        return record_id

    def list_errors(self, limit: int = 20) -> list[ErrorRecord]:
        return list(reversed(self.errors))[:limit]

    def get_state(self, key: str) -> str | None:
        return self.state.get(key)

    def set_state(self, key: str, value: str) -> None:
        self.state[key] = value

    def delete_state(self, key: str) -> None:
        self.state.pop(key, None)

    def consume_state(self, key: str) -> str | None:
        return self.state.pop(key, None)

    def is_running(self) -> bool:
        return self.state.get(STATE_RUNNING) == "true"

    def set_running(self, running: bool) -> None:
        self.state[STATE_RUNNING] = "true" if running else "false"

    def get_last_run(self) -> str | None:
        return self.state.get("last_run")

    def set_last_run(self, when: datetime | None = None) -> None:
        self.state["last_run"] = (when or datetime.now(timezone.utc)).isoformat()

    def request_trigger(self) -> None:
        self.state[STATE_TRIGGER] = datetime.now(timezone.utc).isoformat()

    def consume_trigger(self) -> bool:
        return self.state.pop(STATE_TRIGGER, None) is not None

    def get_oauth_token(self, provider: str) -> dict | None:
        return self.tokens.get(provider)

    def set_oauth_token(self, provider, access_token, refresh_token, expiry="") -> None:
        self.tokens[provider] = {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "expiry": expiry,
        }

    def get_stats(self) -> dict:
        cutoff = datetime.now(timezone.utc) - timedelta(days=1)
        return {
            "processed_24h": sum(1 for r in self.processed.values() if r.processed_at > cutoff),
            "errors_24h": sum(1 for e in self.errors if e.created_at > cutoff),
            "pending_reviews": sum(1 for r in self.reviews.values() if r.status == ReviewStatus.PENDING),
        }


@pytest.fixture
def taxonomy() -> LabelTaxonomy:
    """Small taxonomy with readable IDs."""
    return LabelTaxonomy([
        Label("dur-15m", "15 min", "⌚", LabelCategory.DURATION),
        Label("dur-1h", "1 hour", "⏰", LabelCategory.DURATION),
        Label("ctx-errands", "Errands", "🏃", LabelCategory.CONTEXT),
        Label("ctx-computer", "Computer", "💻", LabelCategory.CONTEXT),
        Label("theme-admin", "Admin", "📋", LabelCategory.THEME),
    ])


@pytest.fixture
def normalizer(taxonomy) -> LabelNormalizer:
    return LabelNormalizer(taxonomy, default_duration="dur-15m", default_context="ctx-computer")


@pytest.fixture
def db() -> InMemoryDatabase:
    store = InMemoryDatabase()
    store.init_schema()
    store.set_running(True)
    return store


@pytest.fixture
def sample_item() -> Item:
    """Starred email used in the passport scenario."""
    return Item(
        id="a1",
        thread_id="t-a1",
        sender="gov@example.com",
        subject="Renew passport",
        body="Your passport expires soon. Please renew it, due Friday.",
    )


@pytest.fixture
def make_item():
    def _make(n: int) -> Item:
        return Item(
            id=f"msg-{n}",
            thread_id=f"thread-{n}",
            sender=f"sender{n}@example.com",
            subject=f"Subject {n}",
            body=f"Body of email {n}",
        )
    return _make


@pytest.fixture
def mock_gmail() -> MagicMock:
    gmail = MagicMock()
    gmail.fetch_flagged_items.return_value = []
    return gmail


@pytest.fixture
def mock_todoist() -> MagicMock:
    todoist = MagicMock()
    counter = itertools.count(1)
    todoist.create_task.side_effect = lambda content, **kwargs: TrackerTask(
        id=f"task-{next(counter)}", content=content, description=kwargs.get("description", "")
    )
    return todoist


@pytest.fixture
def mock_extractor() -> MagicMock:
    return MagicMock(spec=BaseExtractor)


@pytest.fixture
def committer(db, mock_gmail, mock_todoist) -> TaskCommitter:
    return TaskCommitter(db, mock_gmail, mock_todoist)


@pytest.fixture
def cycle(db, mock_gmail, mock_extractor, normalizer, committer) -> ProcessingCycle:
    return ProcessingCycle(db, mock_gmail, mock_extractor, normalizer, committer)


@pytest.fixture
def review_service(db, normalizer, committer) -> ReviewService:
    return ReviewService(db, normalizer, committer)
