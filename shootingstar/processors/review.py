"""
Human review queue operations.

A reviewer either writes the task for a pending email or skips it.
"""

import traceback

from shootingstar.core.database import Database
from shootingstar.core.errors import ConflictError, ErrorKind
from shootingstar.core.logging import bind_context, clear_context, get_logger
from shootingstar.core.models import (
    ErrorRecord,
    ExtractionResult,
    Item,
    PendingReview,
    ProcessingMode,
    ReviewStatus,
)
from shootingstar.labels.normalizer import LabelNormalizer
from shootingstar.processors.committer import TaskCommitter

log = get_logger(__name__)


def item_from_review(review: PendingReview) -> Item:
    """Rebuild the source email from a review snapshot."""
    return Item(
        id=review.item_id,
        thread_id=review.thread_id or "",
        sender=review.sender or "",
        subject=review.subject or "",
        body=review.body or "",
    )


class ReviewService:
    """Resolves pending reviews."""

    def __init__(self, db: Database, normalizer: LabelNormalizer, committer: TaskCommitter):
        self.db = db
        self.normalizer = normalizer
        self.committer = committer

    def complete(self, review_id: int, task: ExtractionResult) -> dict:
        """
        Create the task a reviewer wrote for a pending email.

        The review is flipped to completed before the processed record is
        written so the email is never both pending and handled.

        Args:
            review_id: Pending review ID
            task: Reviewer's task (labels are normalized here)

        Returns:
            Dict with success, and task_id or error
        """
        review = self.db.get_pending_review(review_id)
        if review is None:
            return {"success": False, "error": "Pending review not found"}
        if review.status != ReviewStatus.PENDING:
            return {"success": False, "error": f"Review already {review.status.value}"}

        item = item_from_review(review)
        try:
            bind_context(review_id=review_id, item_id=item.id)
            task.label_ids = self.normalizer.normalize(task.label_ids)

            created = self.committer.create_task(item, task)
            self.committer.mark_handled(item)
            if not self.db.resolve_pending_review(review_id, ReviewStatus.COMPLETED):
                log.warning("review_resolved_concurrently")
            try:
                self.committer.record(item, task, created, ProcessingMode.MANUAL)
            except ConflictError:
                # The task exists and the email is handled; keep the earlier record
                log.warning("processed_record_exists", task_id=created.id)

            log.info("review_completed", task_id=created.id)
            return {"success": True, "task_id": created.id}

        except Exception as e:
            log.error("manual_processing_error", error=str(e))
            self.db.add_error(ErrorRecord(
                kind=ErrorKind.MANUAL_PROCESSING.value,
                message=str(e),
                item_id=item.id,
                trace=traceback.format_exc(),
            ))
            return {"success": False, "error": str(e)}

        finally:
            clear_context()

    def skip(self, review_id: int) -> bool:
        """Skip a pending review. Returns False if it was not pending."""
        skipped = self.db.resolve_pending_review(review_id, ReviewStatus.SKIPPED)
        log.info("review_skipped", review_id=review_id, skipped=skipped)
        return skipped
