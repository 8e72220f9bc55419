"""
Approved Todoist label registry.

Label IDs are the Todoist label IDs; Todoist's REST API takes label names,
so each label also carries the display string sent on task creation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator


class LabelCategory(str, Enum):
    """Label groups with their own cardinality rules."""

    DURATION = "duration"  # Exactly one per task
    CONTEXT = "context"  # At least one per task
    THEME = "theme"
    HORIZON = "horizon"
    PERFORMANCE = "performance"


@dataclass(frozen=True)
class Label:
    """One approved label."""

    id: str
    name: str
    emoji: str
    category: LabelCategory
    description: str | None = None

    @property
    def display_name(self) -> str:
        """Todoist label name, e.g. '15 min ⌚'."""
        return f"{self.name} {self.emoji}"


class LabelTaxonomy:
    """Closed set of approved labels, fixed at construction."""

    def __init__(self, labels: Iterable[Label]):
        self._labels: dict[str, Label] = {}
        for label in labels:
            if label.id in self._labels:
                raise ValueError(f"Duplicate label id in taxonomy: {label.id}")
            self._labels[label.id] = label

    def __contains__(self, label_id: object) -> bool:
        return label_id in self._labels

    def __iter__(self) -> Iterator[Label]:
        return iter(self._labels.values())

    def __len__(self) -> int:
        return len(self._labels)

    def get(self, label_id: str) -> Label | None:
        return self._labels.get(label_id)

    def category_of(self, label_id: str) -> LabelCategory | None:
        label = self._labels.get(label_id)
        return label.category if label else None

    def by_category(self, category: LabelCategory) -> list[Label]:
        return [label for label in self._labels.values() if label.category == category]

    def ids(self) -> list[str]:
        return list(self._labels)

    def display_names(self, label_ids: Iterable[str]) -> list[str]:
        """Translate label IDs to Todoist names, dropping unknown IDs."""
        return [self._labels[i].display_name for i in label_ids if i in self._labels]


_D = LabelCategory.DURATION
_C = LabelCategory.CONTEXT
_T = LabelCategory.THEME
_H = LabelCategory.HORIZON
_P = LabelCategory.PERFORMANCE

DEFAULT_TAXONOMY = LabelTaxonomy([
    # Duration (4)
    Label("2170911418", "5 min", "⏱", _D, "Quick task, under 5 minutes"),
    Label("2170911443", "15 min", "⌚", _D, "Short task, 10-15 minutes"),
    Label("2170911462", "30 min", "⏰", _D, "Medium task, 20-30 minutes"),
    Label("2170911483", "1 hr", "⏳", _D, "Long task, 45-60 minutes"),
    # Context (17)
    Label("2170910796", "Computer", "💻", _C, "Requires computer/laptop"),
    Label("2171144986", "Calls", "📞", _C, "Phone call required"),
    Label("2171144969", "Errands", "🏃", _C, "Out and about tasks"),
    Label("2170910787", "Mobile", "📱", _C, "Can do from phone"),
    Label("2170867398", "Home", "🏡", _C, "At home tasks"),
    Label("2175329080", "Amazon", "📦", _C, "Amazon purchase/order"),
    Label("2174409639", "ChatGPT", "🤖", _C, "AI assistance needed"),
    Label("2170910997", "SHD", "🏦", _C, "SHD related"),
    Label("2174556945", "Workshop", "🪚", _C, "Workshop/garage tasks"),
    Label("2170911275", "Low energy", "😴", _C, "Can do when tired"),
    Label("2170867369", "Fun Depot", "🛠", _C, "Fun Depot location"),
    Label("2170911059", "FLUP", "📅", _C, "Follow-up required"),
    Label("2171145727", "Accountant", "🔢", _C, "Accountant related"),
    Label("2171145711", "Brittany", "👰", _C, "Brittany related"),
    Label("2175489111", "Youtube", "▶️", _C, "Youtube video task"),
    Label("2179977775", "Amy", "🐅", _C, "Amy related"),
    Label("2168964591", "Next Action", "✅", _C, "GTD next action"),
    # Theme (5)
    Label("2170793536", "Challenge", "🏋️", _T, "Personal growth/challenge"),
    Label("2170793538", "Care", "🧘‍♂️", _T, "Self-care/health"),
    Label("2170793551", "Wealth", "💰", _T, "Financial/wealth building"),
    Label("2170793566", "Joy", "🥳", _T, "Fun/enjoyment"),
    Label("2170793532", "Lead", "🤝", _T, "Leadership/influence"),
    # Horizon (3)
    Label("2174349262", "Vision [3-5y]", "🚀", _H, "3-5 year vision aligned"),
    Label("2174349277", "Goals [1-2y]", "🎯", _H, "1-2 year goal aligned"),
    Label("2174556383", "Milestones", "🗿", _H, "Key milestone task"),
    # Performance (2)
    Label("2174846814", "Above Average", "💪🏼", _P, "Above average effort"),
    Label("2174846815", "World Class", "🌎", _P, "World class effort"),
])
