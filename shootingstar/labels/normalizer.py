"""
Label normalization.

Repairs whatever label list the extractor (or a human) proposed into a set
Todoist's scheduling views accept: exactly one duration, at least one context.
"""

from typing import Iterable

from shootingstar.config import settings
from shootingstar.labels.taxonomy import DEFAULT_TAXONOMY, LabelCategory, LabelTaxonomy


class LabelNormalizer:
    """Normalizes candidate label IDs against a taxonomy. Never fails."""

    def __init__(
        self,
        taxonomy: LabelTaxonomy = DEFAULT_TAXONOMY,
        default_duration: str | None = None,
        default_context: str | None = None,
    ):
        self.taxonomy = taxonomy
        self.default_duration = default_duration or settings.default_duration_label
        self.default_context = default_context or settings.default_context_label

        if taxonomy.category_of(self.default_duration) != LabelCategory.DURATION:
            raise ValueError(f"Default duration label is not a duration label: {self.default_duration}")
        if taxonomy.category_of(self.default_context) != LabelCategory.CONTEXT:
            raise ValueError(f"Default context label is not a context label: {self.default_context}")

    @property
    def safe_defaults(self) -> list[str]:
        """Label pair used when nothing the extractor proposed is usable."""
        return [self.default_duration, self.default_context]

    def normalize(self, candidate_ids: Iterable[str]) -> list[str]:
        """
        Normalize a candidate label list.

        1. Drop IDs not in the taxonomy
        2. Deduplicate, keeping first occurrence
        3. Keep only the first duration label, or append the default
        4. Append the default context label if there is none

        Args:
            candidate_ids: Label IDs in proposed order

        Returns:
            Ordered list of approved label IDs
        """
        normalized: list[str] = []
        seen: set[str] = set()
        for label_id in candidate_ids:
            if label_id in self.taxonomy and label_id not in seen:
                seen.add(label_id)
                normalized.append(label_id)

        durations = [i for i in normalized if self.taxonomy.category_of(i) == LabelCategory.DURATION]
        if not durations:
            normalized.append(self.default_duration)
        elif len(durations) > 1:
            first = durations[0]
            normalized = [
                i for i in normalized
                if self.taxonomy.category_of(i) != LabelCategory.DURATION or i == first
            ]

        if not any(self.taxonomy.category_of(i) == LabelCategory.CONTEXT for i in normalized):
            normalized.append(self.default_context)

        return normalized
