"""
Abstract base class for processors.
"""

from abc import ABC, abstractmethod

from shootingstar.core.models import CycleResult


class BaseProcessor(ABC):
    """Abstract processor interface for the starred email pipeline."""

    @abstractmethod
    def run(self, force: bool = False) -> CycleResult:
        """
        Run one processing pass.

        Args:
            force: Ignore the automation running flag

        Returns:
            Cycle statistics
        """
        pass
