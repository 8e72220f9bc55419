"""Unit tests for the processing cycle."""

import pytest

from shootingstar.core.database import STATE_AUTH_URL
from shootingstar.core.errors import AuthenticationRequired, CycleError, ErrorKind, MisconfiguredEnvironment
from shootingstar.core.models import ExtractionResult, FallbackRequired, Fatal, ProcessingMode, Success


def success(task: str, labels: list[str], **kwargs) -> Success:
    return Success(ExtractionResult(task, list(labels), **kwargs))


class TestProcessingCycle:
    """Tests for ProcessingCycle.run."""

    def test_passport_scenario(self, cycle, db, mock_gmail, mock_extractor, mock_todoist, sample_item):
        mock_gmail.fetch_flagged_items.return_value = [sample_item]
        mock_extractor.extract.return_value = success(
            "Renew passport before trip", ["ctx-errands"], due_string="Friday"
        )

        result = cycle.run()

        assert result.processed == 1
        assert result.errors == 0
        record = db.processed["a1"]
        assert record.label_ids == ["ctx-errands", "dur-15m"]
        assert record.mode == ProcessingMode.AUTO
        assert "Subject: Renew passport" in mock_todoist.create_task.call_args.kwargs["description"]

    def test_idempotent_across_cycles(self, cycle, db, mock_gmail, mock_extractor, mock_todoist, sample_item):
        mock_gmail.fetch_flagged_items.return_value = [sample_item]
        mock_extractor.extract.return_value = success("Renew passport", ["ctx-errands"])

        cycle.run()
        second = cycle.run()

        assert second.processed == 0
        assert mock_todoist.create_task.call_count == 1
        assert mock_extractor.extract.call_count == 1
        assert len(db.processed) == 1

    def test_fallback_queues_review_once(self, cycle, db, mock_gmail, mock_extractor, sample_item):
        mock_gmail.fetch_flagged_items.return_value = [sample_item]
        mock_extractor.extract.return_value = FallbackRequired("Claude CLI timed out")

        first = cycle.run()
        second = cycle.run()

        assert first.pending == 1
        assert second.pending == 0
        assert len(db.reviews) == 1
        assert db.is_pending_review("a1")
        assert not db.is_handled("a1")
        assert mock_extractor.extract.call_count == 1

    def test_failure_isolation(self, cycle, db, mock_gmail, mock_extractor, mock_todoist, make_item):
        items = [make_item(n) for n in range(5)]
        mock_gmail.fetch_flagged_items.return_value = items
        mock_extractor.extract.side_effect = lambda item: success(f"Review {item.subject}", ["ctx-computer"])

        original = mock_todoist.create_task.side_effect

        def flaky(content, **kwargs):
            if content == "Review Subject 2":
                raise RuntimeError("Todoist 500")
            return original(content, **kwargs)

        mock_todoist.create_task.side_effect = flaky

        result = cycle.run()

        assert result.processed == 4
        assert result.errors == 1
        assert set(db.processed) == {"msg-0", "msg-1", "msg-3", "msg-4"}
        assert len(db.errors) == 1
        assert db.errors[0].kind == ErrorKind.PROCESSING.value
        assert db.errors[0].item_id == "msg-2"

    def test_failed_item_retried_next_cycle(self, cycle, db, mock_gmail, mock_extractor, mock_todoist, sample_item):
        mock_gmail.fetch_flagged_items.return_value = [sample_item]
        mock_extractor.extract.return_value = success("Renew passport", ["ctx-errands"])
        original = mock_todoist.create_task.side_effect
        mock_todoist.create_task.side_effect = RuntimeError("timeout")

        assert cycle.run().errors == 1

        mock_todoist.create_task.side_effect = original
        assert cycle.run().processed == 1
        assert db.is_handled("a1")

    def test_fatal_aborts_remaining_items(self, cycle, db, mock_gmail, mock_extractor, make_item):
        items = [make_item(n) for n in range(4)]
        mock_gmail.fetch_flagged_items.return_value = items
        outcomes = {
            "msg-0": success("Review one", ["ctx-computer"]),
            "msg-1": Fatal(MisconfiguredEnvironment("ANTHROPIC_API_KEY detected!")),
        }
        mock_extractor.extract.side_effect = lambda item: outcomes[item.id]

        result = cycle.run()

        assert result.aborted
        assert result.processed == 1
        assert set(db.processed) == {"msg-0"}
        assert not db.reviews
        assert [e.kind for e in db.errors] == [ErrorKind.ENVIRONMENT.value]
        assert mock_extractor.extract.call_count == 2

    def test_environment_checked_before_fetch(self, cycle, db, mock_gmail, mock_extractor):
        mock_extractor.validate_environment.side_effect = MisconfiguredEnvironment("ANTHROPIC_API_KEY detected!")

        result = cycle.run()

        assert result.aborted
        mock_gmail.fetch_flagged_items.assert_not_called()
        assert db.errors[0].kind == "ENV_ERROR"

    def test_skipped_when_not_running(self, cycle, db, mock_gmail):
        db.set_running(False)

        result = cycle.run()

        assert result.skipped
        assert db.get_last_run() is not None
        mock_gmail.fetch_flagged_items.assert_not_called()

    def test_force_ignores_running_flag(self, cycle, db, mock_gmail):
        db.set_running(False)

        result = cycle.run(force=True)

        assert not result.skipped
        mock_gmail.fetch_flagged_items.assert_called_once()

    def test_auth_required_is_not_an_error(self, cycle, db, mock_gmail):
        mock_gmail.fetch_flagged_items.side_effect = AuthenticationRequired("https://accounts.google.com/auth")

        result = cycle.run()

        assert result.auth_required
        assert result.auth_url == "https://accounts.google.com/auth"
        assert db.get_state(STATE_AUTH_URL) == "https://accounts.google.com/auth"
        assert db.errors == []

    def test_auth_url_cleared_after_successful_fetch(self, cycle, db):
        db.set_state(STATE_AUTH_URL, "https://stale")

        cycle.run()

        assert db.get_state(STATE_AUTH_URL) is None

    def test_fetch_failure_raises_cycle_error(self, cycle, db, mock_gmail):
        mock_gmail.fetch_flagged_items.side_effect = ConnectionError("network down")

        with pytest.raises(CycleError):
            cycle.run()

        assert db.errors[0].kind == ErrorKind.CYCLE.value

    def test_handled_and_pending_are_exclusive(self, cycle, db, mock_gmail, mock_extractor, make_item):
        items = [make_item(n) for n in range(4)]
        mock_gmail.fetch_flagged_items.return_value = items
        mock_extractor.extract.side_effect = lambda item: (
            FallbackRequired("no auth") if item.id in ("msg-1", "msg-3") else success("Call back", ["ctx-computer"])
        )

        cycle.run()
        cycle.run()

        for item in items:
            assert not (db.is_handled(item.id) and db.is_pending_review(item.id))
