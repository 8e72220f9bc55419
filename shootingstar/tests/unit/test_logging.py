"""Unit tests for logging setup."""

import logging

import pytest
import structlog

from shootingstar.core.logging import _add_service, configure_logging


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_service_field_added():
    assert _add_service(None, "info", {"event": "x"})["service"] == "shootingstar"
    assert _add_service(None, "info", {"event": "x", "service": "other"})["service"] == "other"


def test_noisy_loggers_quieted(reset_structlog):
    configure_logging("DEBUG", json_output=True)
    assert logging.getLogger("apscheduler").level == logging.WARNING

    configure_logging("ERROR", json_output=False)
    assert logging.getLogger("urllib3").level == logging.ERROR
