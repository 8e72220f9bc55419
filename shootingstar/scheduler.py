"""
APScheduler job runner for the processing cycle.

Three wake sources share one guarded execution path:

- interval job every few minutes
- trigger poll that runs a cycle when the trigger_run flag was set
- one-off bootstrap run shortly after startup, ignoring the running flag

A wake that finds a cycle already in progress is dropped.
"""

import threading
from datetime import datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from shootingstar.config import settings
from shootingstar.core.database import Database
from shootingstar.core.logging import get_logger
from shootingstar.core.models import CycleResult
from shootingstar.processors.base import BaseProcessor

log = get_logger(__name__)

class CycleScheduler:
    """Drives a processor on a schedule, one cycle at a time."""

    def __init__(
        self,
        db: Database,
        cycle: BaseProcessor,
        interval_minutes: int | None = None,
        poll_seconds: int | None = None,
        startup_delay_seconds: int | None = None,
    ):
        self.db = db
        self.cycle = cycle
        self.interval_minutes = interval_minutes or settings.cycle_interval_minutes
        self.poll_seconds = poll_seconds or settings.trigger_poll_seconds
        self.startup_delay_seconds = (
            settings.startup_delay_seconds if startup_delay_seconds is None else startup_delay_seconds
        )
        self._lock = threading.Lock()
        self._scheduler: BackgroundScheduler | None = None

    # Automation state

    def start_automation(self) -> bool:
        """Set running=true. Returns False if it was already running."""
        if self.db.is_running():
            return False
        self.db.set_running(True)
        log.info("automation_started")
        return True

    def stop_automation(self) -> bool:
        """Set running=false. Returns False if it was already stopped."""
        if not self.db.is_running():
            return False
        self.db.set_running(False)
        log.info("automation_stopped")
        return True

    def trigger_once(self) -> None:
        """Ask the trigger poll to run a cycle soon."""
        self.db.request_trigger()
        log.info("cycle_trigger_requested")

    # Execution

    def execute(self, force: bool = False, source: str = "manual") -> CycleResult | None:
        """
        Run one cycle unless another is in progress.

        Returns:
            The cycle result, or None if the wake was dropped or the cycle failed
        """
        if not self._lock.acquire(blocking=False):
            log.info("cycle_wake_dropped", source=source)
            return None

        try:
            return self._run_locked(force, source)
        finally:
            self._lock.release()

    def _run_locked(self, force: bool, source: str) -> CycleResult | None:
        try:
            log.info("scheduled_job_starting", job="cycle", source=source)
            result = self.cycle.run(force=force)
            log.info("scheduled_job_complete", job="cycle", source=source, **result.to_dict())
            return result
        except Exception as e:
            log.error("scheduled_job_error", job="cycle", source=source, error=str(e))
            return None

    def run_now(self) -> CycleResult | None:
        """Run a cycle synchronously, regardless of the running flag."""
        return self.execute(force=True, source="run_once")

    def _interval_job(self) -> None:
        self.execute(source="interval")

    def _trigger_job(self) -> None:
        # The flag is only consumed once the lock is held, so a trigger
        # raised during a running cycle is picked up by a later poll.
        if not self._lock.acquire(blocking=False):
            return

        try:
            if self.db.consume_trigger():
                log.info("cycle_trigger_detected")
                self._run_locked(force=False, source="trigger")
        finally:
            self._lock.release()

    def _bootstrap_job(self) -> None:
        self.execute(force=True, source="startup")

    # Lifecycle

    @property
    def started(self) -> bool:
        return self._scheduler is not None

    def start(self) -> BackgroundScheduler:
        """Register the jobs and start the background scheduler."""
        if self._scheduler is not None:
            log.warning("scheduler_already_running")
            return self._scheduler

        scheduler = BackgroundScheduler()
        scheduler.add_job(
            self._interval_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="process_starred",
            name="Process starred emails",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.add_job(
            self._trigger_job,
            trigger=IntervalTrigger(seconds=self.poll_seconds),
            id="poll_trigger",
            name="Poll manual trigger flag",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.add_job(
            self._bootstrap_job,
            trigger=DateTrigger(run_date=datetime.now() + timedelta(seconds=self.startup_delay_seconds)),
            id="startup_cycle",
            name="Initial processing run",
            replace_existing=True,
        )

        scheduler.start()
        self._scheduler = scheduler
        log.info(
            "scheduler_started",
            interval_minutes=self.interval_minutes,
            poll_seconds=self.poll_seconds,
            startup_delay_seconds=self.startup_delay_seconds,
        )
        return scheduler

    def shutdown(self, wait: bool = False) -> None:
        """Stop the background scheduler."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=wait)
            self._scheduler = None
            log.info("scheduler_stopped")

