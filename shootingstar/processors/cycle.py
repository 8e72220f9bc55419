"""
Processing cycle.

One pass over the starred inbox: fetch, skip anything already handled or
queued for review, extract, then either commit a task or queue the email for
a human. Per-item failures are recorded and the loop moves on.
"""

import traceback

from shootingstar.config import settings
from shootingstar.core.database import STATE_AUTH_URL, Database
from shootingstar.core.errors import (
    AuthenticationRequired,
    CycleError,
    ErrorKind,
    MisconfiguredEnvironment,
)
from shootingstar.core.logging import bind_context, clear_context, get_logger
from shootingstar.core.models import (
    CycleResult,
    ErrorRecord,
    FallbackRequired,
    Fatal,
    Item,
    PendingReview,
    ProcessingMode,
    Success,
)
from shootingstar.extractors.base import BaseExtractor
from shootingstar.labels.normalizer import LabelNormalizer
from shootingstar.processors.base import BaseProcessor
from shootingstar.processors.committer import TaskCommitter
from shootingstar.services.gmail import GmailClient

log = get_logger(__name__)


class ProcessingCycle(BaseProcessor):
    """Runs one fetch-extract-commit pass over starred emails."""

    def __init__(
        self,
        db: Database,
        gmail: GmailClient,
        extractor: BaseExtractor,
        normalizer: LabelNormalizer,
        committer: TaskCommitter,
    ):
        self.db = db
        self.gmail = gmail
        self.extractor = extractor
        self.normalizer = normalizer
        self.committer = committer

    def run(self, force: bool = False) -> CycleResult:
        """
        Run the processing cycle.

        Args:
            force: Run even when automation is stopped (startup bootstrap)

        Returns:
            CycleResult with counts

        Raises:
            CycleError: If starred emails could not be fetched
        """
        result = CycleResult()
        self.db.set_last_run()

        if not force and not self.db.is_running():
            log.debug("cycle_skipped_not_running")
            result.skipped = True
            return result

        try:
            self.extractor.validate_environment()
        except MisconfiguredEnvironment as e:
            self._abort(result, e)
            return result

        try:
            items = self.gmail.fetch_flagged_items(settings.gmail_max_results)
        except AuthenticationRequired as e:
            log.warning("gmail_auth_required", auth_url=e.auth_url)
            self.db.set_state(STATE_AUTH_URL, e.auth_url)
            result.auth_required = True
            result.auth_url = e.auth_url
            return result
        except Exception as e:
            log.error("cycle_fetch_error", error=str(e))
            self.db.add_error(ErrorRecord(
                kind=ErrorKind.CYCLE.value,
                message=str(e),
                trace=traceback.format_exc(),
            ))
            raise CycleError(f"Failed to fetch starred emails: {e}") from e

        self.db.delete_state(STATE_AUTH_URL)
        log.info("cycle_started", fetched=len(items))

        for item in items:
            if self.db.is_handled(item.id) or self.db.is_pending_review(item.id):
                continue

            try:
                bind_context(item_id=item.id)
                if not self._process_single(item, result):
                    break
            except Exception as e:
                log.error("process_item_error", error=str(e))
                self.db.add_error(ErrorRecord(
                    kind=ErrorKind.PROCESSING.value,
                    message=str(e),
                    item_id=item.id,
                    trace=traceback.format_exc(),
                ))
                result.errors += 1
            finally:
                clear_context()

        log.info("cycle_complete", **result.to_dict())
        return result

    def _process_single(self, item: Item, result: CycleResult) -> bool:
        """Process one new email. Returns False when the cycle must stop."""
        outcome = self.extractor.extract(item)

        if isinstance(outcome, Fatal):
            self._abort(result, outcome.error, item_id=item.id)
            return False

        if isinstance(outcome, FallbackRequired):
            log.info("extraction_fallback", reason=outcome.reason)
            if self.db.record_pending_review(PendingReview.from_item(item)):
                result.pending += 1
            return True

        if isinstance(outcome, Success):
            extraction = outcome.result
            extraction.label_ids = self.normalizer.normalize(extraction.label_ids)
            self.committer.commit(item, extraction, ProcessingMode.AUTO)
            result.processed += 1
            return True

        raise TypeError(f"Unknown extraction outcome: {outcome!r}")

    def _abort(self, result: CycleResult, error: Exception, item_id: str | None = None) -> None:
        log.error("cycle_aborted_environment", error=str(error))
        self.db.add_error(ErrorRecord(
            kind=ErrorKind.ENVIRONMENT.value,
            message=str(error),
            item_id=item_id,
        ))
        result.errors += 1
        result.aborted = True
