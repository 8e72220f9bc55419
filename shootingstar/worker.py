"""
Headless worker process.

Runs the scheduler without the HTTP API. Polls Gmail every few minutes for
starred emails and checks the trigger flag every few seconds.

Run with: python -m shootingstar.worker
"""

import argparse
import signal
import sys
import threading

from shootingstar.config import settings
from shootingstar.core.logging import configure_logging, get_logger
from shootingstar.pipeline import build_pipeline

log = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the worker."""
    parser = argparse.ArgumentParser(description="Process starred Gmail emails into Todoist tasks")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle (ignoring the running flag) and exit",
    )
    parser.add_argument(
        "--sync-labels",
        action="store_true",
        help="Create any missing taxonomy labels in Todoist and exit",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    args = parser.parse_args(argv)

    configure_logging(log_level=args.log_level, json_output=settings.log_json)

    pipeline = build_pipeline()
    pipeline.db.init_schema()

    if args.sync_labels:
        created = pipeline.todoist.ensure_labels_exist()
        log.info("todoist_labels_synced", created=len(created))
        return 0

    if args.once:
        result = pipeline.scheduler.run_now()
        return 0 if result is not None and not result.aborted else 1

    stop = threading.Event()

    def handle_signal(signum, frame):
        log.info("worker_signal_received", signal=signal.Signals(signum).name)
        stop.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    pipeline.scheduler.start()
    log.info("worker_started", running=pipeline.db.is_running())

    stop.wait()

    pipeline.scheduler.shutdown(wait=True)
    log.info("worker_stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
