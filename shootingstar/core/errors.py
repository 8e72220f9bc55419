"""
Error taxonomy for the processing pipeline.

Expected routing decisions (extraction fallback) are returned as values and
never raised. Everything here is either a true failure or the Gmail
re-authorization signal.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Kind tag stored with every error_log row."""

    ENVIRONMENT = "ENV_ERROR"
    PROCESSING = "PROCESSING_ERROR"
    CYCLE = "CYCLE_ERROR"
    MANUAL_PROCESSING = "MANUAL_PROCESSING_ERROR"


class ShootingStarError(Exception):
    """Base class for all pipeline errors."""

    kind: ErrorKind = ErrorKind.CYCLE


class MisconfiguredEnvironment(ShootingStarError):
    """The process environment is unsafe to run in. Aborts the whole cycle."""

    kind = ErrorKind.ENVIRONMENT


class AuthenticationRequired(ShootingStarError):
    """Gmail needs the operator to re-authorize. Not logged as an error."""

    def __init__(self, auth_url: str, message: str = "Gmail authentication required"):
        super().__init__(message)
        self.auth_url = auth_url


class CommitError(ShootingStarError):
    """Creating the tracker task failed. The item stays eligible for retry."""

    kind = ErrorKind.PROCESSING

    def __init__(self, message: str, item_id: str | None = None):
        super().__init__(message)
        self.item_id = item_id


class CycleError(ShootingStarError):
    """The cycle failed outside the per-item loop (e.g. fetching)."""

    kind = ErrorKind.CYCLE


class ConflictError(ShootingStarError):
    """A ledger row already exists for this item id."""

    def __init__(self, item_id: str):
        super().__init__(f"Item {item_id} already has a processed record")
        self.item_id = item_id
