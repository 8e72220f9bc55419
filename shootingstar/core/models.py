"""
Data models for the starred email pipeline.

Uses dataclasses for clean, typed data structures.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

GMAIL_THREAD_URL = "https://mail.google.com/mail/u/0/#inbox/{thread_id}"


class ProcessingMode(str, Enum):
    """How the tracker task for an email was produced."""

    AUTO = "auto"  # Extracted by the Claude CLI
    MANUAL = "manual"  # Written by a human from the review queue


class ReviewStatus(str, Enum):
    """Lifecycle of a pending review row."""

    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Item:
    """A starred email as fetched from Gmail."""

    id: str
    thread_id: str = ""
    sender: str = ""
    subject: str = ""
    body: str = ""
    labels: tuple[str, ...] = ()

    @property
    def source_link(self) -> str:
        """Link that opens the email thread in Gmail."""
        return GMAIL_THREAD_URL.format(thread_id=self.thread_id)


@dataclass
class ExtractionResult:
    """Task proposal extracted from one email."""

    task_title: str
    label_ids: list[str] = field(default_factory=list)
    notes: str | None = None
    due_string: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractionResult":
        """Create ExtractionResult from the extractor's JSON payload."""
        labels = data.get("labels") or []
        task = data.get("task")
        return cls(
            task_title=task.strip() if isinstance(task, str) else "",
            label_ids=[str(label) for label in labels],
            notes=data.get("notes") or None,
            due_string=data.get("dueString") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the extractor's JSON shape."""
        return {
            "task": self.task_title,
            "labels": list(self.label_ids),
            "notes": self.notes,
            "dueString": self.due_string,
        }


@dataclass
class Success:
    """Extraction produced a usable task."""

    result: ExtractionResult


@dataclass
class FallbackRequired:
    """Extraction did not succeed; route the email to human review."""

    reason: str


@dataclass
class Fatal:
    """The environment is misconfigured; the cycle must stop."""

    error: Exception


ExtractionOutcome = Union[Success, FallbackRequired, Fatal]


@dataclass
class TrackerTask:
    """Task as returned by Todoist."""

    id: str
    content: str
    description: str = ""
    labels: list[str] = field(default_factory=list)
    url: str = ""


@dataclass
class ProcessedRecord:
    """Dedup tombstone for an email that has a tracker task."""

    item_id: str
    external_task_id: str
    task_title: str
    label_ids: list[str] = field(default_factory=list)
    mode: ProcessingMode = ProcessingMode.AUTO
    thread_id: str | None = None
    sender: str | None = None
    subject: str | None = None
    processed_at: datetime | None = None
    id: int | None = None


@dataclass
class PendingReview:
    """An email waiting for a human to write its task."""

    item_id: str
    thread_id: str | None = None
    sender: str | None = None
    subject: str | None = None
    body: str | None = None
    source_link: str | None = None
    status: ReviewStatus = ReviewStatus.PENDING
    created_at: datetime | None = None
    completed_at: datetime | None = None
    id: int | None = None

    @classmethod
    def from_item(cls, item: Item) -> "PendingReview":
        """Snapshot an item for the review queue."""
        return cls(
            item_id=item.id,
            thread_id=item.thread_id,
            sender=item.sender,
            subject=item.subject,
            body=item.body,
            source_link=item.source_link,
        )


@dataclass
class ErrorRecord:
    """Append-only error log entry."""

    kind: str
    message: str
    item_id: str | None = None
    trace: str | None = None
    created_at: datetime | None = None
    id: int | None = None


@dataclass
class CycleResult:
    """Statistics for one processing cycle."""

    processed: int = 0
    errors: int = 0
    pending: int = 0
    aborted: bool = False
    skipped: bool = False  # Automation stopped, no work attempted
    auth_required: bool = False
    auth_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "errors": self.errors,
            "pending": self.pending,
            "aborted": self.aborted,
            "skipped": self.skipped,
            "auth_required": self.auth_required,
            "auth_url": self.auth_url,
        }
