"""Core modules for starred email processing."""

from .logging import configure_logging, get_logger
from .models import (
    Item,
    ExtractionResult,
    ExtractionOutcome,
    Success,
    FallbackRequired,
    Fatal,
    ProcessedRecord,
    PendingReview,
    ErrorRecord,
    CycleResult,
)
from .database import Database

__all__ = [
    "configure_logging",
    "get_logger",
    "Item",
    "ExtractionResult",
    "ExtractionOutcome",
    "Success",
    "FallbackRequired",
    "Fatal",
    "ProcessedRecord",
    "PendingReview",
    "ErrorRecord",
    "CycleResult",
    "Database",
]
