"""
Abstract base class for task extractors.
"""

from abc import ABC, abstractmethod

from shootingstar.core.models import ExtractionOutcome, Item


class BaseExtractor(ABC):
    """Abstract extractor interface."""

    @abstractmethod
    def validate_environment(self) -> None:
        """
        Check that the process environment is safe to extract in.

        Raises:
            MisconfiguredEnvironment: If extraction must not run at all
        """
        pass

    @abstractmethod
    def extract(self, item: Item) -> ExtractionOutcome:
        """
        Extract a task proposal from an email.

        Args:
            item: Starred email to extract from

        Returns:
            Success, FallbackRequired or Fatal. Never raises for expected
            failures such as timeouts or unparseable output.
        """
        pass

    @abstractmethod
    def is_authenticated(self) -> bool:
        """Whether the extractor has usable credentials."""
        pass
