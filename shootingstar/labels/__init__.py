"""Label taxonomy and normalization."""

from .taxonomy import DEFAULT_TAXONOMY, Label, LabelCategory, LabelTaxonomy
from .normalizer import LabelNormalizer

__all__ = [
    "DEFAULT_TAXONOMY",
    "Label",
    "LabelCategory",
    "LabelTaxonomy",
    "LabelNormalizer",
]
