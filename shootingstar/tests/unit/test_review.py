"""Unit tests for the review service."""

from shootingstar.core.errors import ErrorKind
from shootingstar.core.models import (
    ExtractionResult,
    PendingReview,
    ProcessedRecord,
    ProcessingMode,
    ReviewStatus,
)


def queue_review(db, item) -> int:
    db.record_pending_review(PendingReview.from_item(item))
    return next(r.id for r in db.reviews.values() if r.item_id == item.id)


class TestReviewService:
    """Tests for completing and skipping pending reviews."""

    def test_complete_creates_manual_task(self, review_service, db, mock_gmail, mock_todoist, sample_item):
        review_id = queue_review(db, sample_item)

        outcome = review_service.complete(review_id, ExtractionResult("Renew passport", ["ctx-errands"]))

        assert outcome == {"success": True, "task_id": "task-1"}
        assert db.reviews[review_id].status == ReviewStatus.COMPLETED
        assert db.reviews[review_id].completed_at is not None
        record = db.processed["a1"]
        assert record.mode == ProcessingMode.MANUAL
        assert record.label_ids == ["ctx-errands", "dur-15m"]
        assert not db.is_pending_review("a1")
        mock_gmail.unstar_item.assert_called_once_with("a1")
        description = mock_todoist.create_task.call_args.kwargs["description"]
        assert "Original email: https://mail.google.com/mail/u/0/#inbox/t-a1" in description

    def test_complete_failure_logs_manual_error(self, review_service, db, mock_todoist, sample_item):
        review_id = queue_review(db, sample_item)
        mock_todoist.create_task.side_effect = RuntimeError("Todoist down")

        outcome = review_service.complete(review_id, ExtractionResult("Renew passport", []))

        assert outcome["success"] is False
        assert db.reviews[review_id].status == ReviewStatus.PENDING
        assert db.errors[0].kind == ErrorKind.MANUAL_PROCESSING.value
        assert db.errors[0].item_id == "a1"
        assert not db.is_handled("a1")

    def test_complete_with_existing_record_still_succeeds(self, review_service, db, mock_todoist, sample_item):
        review_id = queue_review(db, sample_item)
        db.record_processed(ProcessedRecord("a1", "task-0", "Renew passport"))

        outcome = review_service.complete(review_id, ExtractionResult("Renew passport", []))

        assert outcome == {"success": True, "task_id": "task-1"}
        assert db.reviews[review_id].status == ReviewStatus.COMPLETED
        assert db.processed["a1"].external_task_id == "task-0"
        assert db.errors == []
        mock_todoist.create_task.assert_called_once()

    def test_complete_unknown_review(self, review_service):
        outcome = review_service.complete(999, ExtractionResult("Anything", []))
        assert outcome == {"success": False, "error": "Pending review not found"}

    def test_complete_already_skipped(self, review_service, db, mock_todoist, sample_item):
        review_id = queue_review(db, sample_item)
        review_service.skip(review_id)

        outcome = review_service.complete(review_id, ExtractionResult("Renew passport", []))

        assert outcome["success"] is False
        mock_todoist.create_task.assert_not_called()

    def test_skip(self, review_service, db, sample_item):
        review_id = queue_review(db, sample_item)

        assert review_service.skip(review_id)
        assert not review_service.skip(review_id)
        assert db.reviews[review_id].status == ReviewStatus.SKIPPED
        assert not db.is_pending_review("a1")
