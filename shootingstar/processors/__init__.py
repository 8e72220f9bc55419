"""Starred email processors."""

from .base import BaseProcessor
from .committer import TaskCommitter, compose_description
from .cycle import ProcessingCycle
from .review import ReviewService

__all__ = [
    "BaseProcessor",
    "ProcessingCycle",
    "ReviewService",
    "TaskCommitter",
    "compose_description",
]
