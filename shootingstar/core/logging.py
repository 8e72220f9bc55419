"""
structlog setup for the API and the worker.

Every event carries service="shootingstar" plus whatever the processing cycle
binds with bind_context() (item_id, review_id). Production runs emit one JSON
object per line; local runs use the console renderer.
"""

import logging
import sys

import structlog

SERVICE_NAME = "shootingstar"

# Libraries that log every poll or HTTP call at INFO
NOISY_LOGGERS = ("apscheduler", "googleapiclient.discovery_cache", "urllib3")


def _add_service(logger, method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        json_output: JSON lines when True, colored console output otherwise
    """
    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Attach key/value pairs to every event logged until clear_context()."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
