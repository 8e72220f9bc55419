"""
Advisory validation for tasks and label sets.

Nothing here blocks a commit: the normalizer already guarantees a valid label
set. Results are logged so badly-formed extractions show up in the logs.
"""

from dataclasses import dataclass, field
from typing import Iterable

from shootingstar.labels.taxonomy import DEFAULT_TAXONOMY, LabelCategory, LabelTaxonomy

# Common GTD action verbs; a task title should start with one
ACTION_VERBS = (
    "review", "call", "research", "write", "email", "schedule", "update",
    "create", "analyze", "prepare", "draft", "send", "complete", "finish",
    "read", "study", "practice", "plan", "organize", "clean", "fix",
    "install", "configure", "test", "deploy", "refactor", "design", "buy",
    "order", "check", "follow", "set", "book", "cancel", "confirm", "print",
    "scan", "file", "submit", "request", "ask", "discuss", "meet", "attend",
    "watch", "listen", "record", "upload", "download", "backup", "move",
    "copy", "delete", "archive", "export", "import", "merge", "split",
    "rename", "tag", "label", "sort", "filter", "search", "find", "locate",
    "measure", "calculate", "estimate", "quote", "invoice", "pay", "collect",
    "deposit", "transfer", "wire", "ship", "pack", "unpack", "assemble",
    "disassemble", "repair", "replace", "return", "exchange", "register",
    "sign", "apply", "enroll", "renew",
)


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        lines = ["Task format is valid"] if self.valid else ["Task format has errors:"]
        lines.extend(f"  - {error}" for error in self.errors)
        if self.warnings:
            lines.append("Warnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings)
        return "\n".join(lines)


def validate_labels(labels: list[str], taxonomy: LabelTaxonomy = DEFAULT_TAXONOMY) -> ValidationResult:
    """Every label must be approved; duplicates are only a warning."""
    errors = [
        f"Invalid label ID: {label_id} - not in approved list"
        for label_id in labels
        if label_id not in taxonomy
    ]
    warnings = ["Duplicate labels detected"] if len(set(labels)) != len(labels) else []
    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def validate_duration(labels: Iterable[str], taxonomy: LabelTaxonomy = DEFAULT_TAXONOMY) -> ValidationResult:
    """Exactly one duration label is required."""
    count = sum(1 for i in labels if taxonomy.category_of(i) == LabelCategory.DURATION)
    if count == 0:
        return ValidationResult(False, ["Missing duration label - exactly one is required"])
    if count > 1:
        return ValidationResult(False, [f"Too many duration labels ({count}) - exactly one is required"])
    return ValidationResult(True)


def validate_task_format(task: str) -> ValidationResult:
    """Check the [Action verb] + [What] + [Detail] convention."""
    words = task.split()
    if not words:
        return ValidationResult(False, ["Task content is empty"])

    warnings = []
    if len(words) < 2:
        warnings.append("Task is very short - consider adding more detail")
    elif len(words) < 3:
        warnings.append("Task may be too short - consider adding more detail")

    first = words[0].lower()
    if not any(first.startswith(verb) for verb in ACTION_VERBS):
        warnings.append(
            f'Task should start with action verb (e.g., Review, Call, Research). Found: "{words[0]}"'
        )

    return ValidationResult(True, warnings=warnings)


def is_valid_label_set(labels: list[str], taxonomy: LabelTaxonomy = DEFAULT_TAXONOMY) -> bool:
    return validate_labels(labels, taxonomy).valid and validate_duration(labels, taxonomy).valid
