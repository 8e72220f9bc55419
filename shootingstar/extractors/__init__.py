"""
Task extractors.

Uses the Claude CLI for all extraction.
"""

from shootingstar.extractors.base import BaseExtractor
from shootingstar.extractors.claude_cli import ClaudeCliExtractor
from shootingstar.labels.normalizer import LabelNormalizer


def get_extractor(normalizer: LabelNormalizer | None = None) -> ClaudeCliExtractor:
    """Get the extractor used by the processing cycle."""
    return ClaudeCliExtractor(normalizer=normalizer)


__all__ = [
    "BaseExtractor",
    "ClaudeCliExtractor",
    "get_extractor",
]
