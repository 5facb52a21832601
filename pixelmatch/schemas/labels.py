# pixelmatch/schemas/labels.py
from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from re import Pattern
from typing import TypeVar

T = TypeVar("T", bound=Enum)

# =========================
# Canonical label enums
# =========================


class DiscrepancyType(str, Enum):
    color = "color"
    size = "size"
    typography = "typography"
    position = "position"
    layout = "layout"
    other = "other"


class Priority(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class DiscrepancyStatus(str, Enum):
    open = "open"
    in_progress = "in-progress"
    resolved = "resolved"


class ComparisonStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"


class ActivityType(str, Enum):
    project_created = "project_created"
    comparison_run = "comparison_run"
    discrepancy_added = "discrepancy_added"
    discrepancy_updated = "discrepancy_updated"
    comment_added = "comment_added"
    user_invited = "user_invited"


class Role(str, Enum):
    user = "user"
    designer = "designer"
    developer = "developer"
    qa = "qa"


class Shape(str, Enum):
    rectangle = "rectangle"
    circle = "circle"


# =========================
# Provider token aliases
# =========================

# Models drift from the requested vocabulary ("colour", "font", "alignment").
# Aliases are matched as whole tokens, case-insensitively.
TYPE_TOKEN_ALIASES: dict[str, DiscrepancyType] = {
    r"colou?rs?": DiscrepancyType.color,
    r"contrast": DiscrepancyType.color,
    r"sizes?|sizing|dimensions?|scale": DiscrepancyType.size,
    r"typography|fonts?|text|font[-_ ]?weight|line[-_ ]?height": DiscrepancyType.typography,
    r"position(ing)?|alignment|align(ed)?|offset": DiscrepancyType.position,
    r"layout|spacing|padding|margins?|structure": DiscrepancyType.layout,
}

PRIORITY_TOKEN_ALIASES: dict[str, Priority] = {
    r"high|critical|major|severe": Priority.high,
    r"medium|moderate|normal": Priority.medium,
    r"low|minor|cosmetic|trivial": Priority.low,
}


def _compile_map(m: Mapping[str, T]) -> list[tuple[Pattern[str], T]]:
    return [(re.compile(rf"^(?:{k})$", re.IGNORECASE), v) for k, v in m.items()]


_TYPE_PATTERNS = _compile_map(TYPE_TOKEN_ALIASES)
_PRIORITY_PATTERNS = _compile_map(PRIORITY_TOKEN_ALIASES)


def _match(value: object, patterns: list[tuple[Pattern[str], T]]) -> T | None:
    if not isinstance(value, str):
        return None
    token = value.strip()
    for pat, label in patterns:
        if pat.match(token):
            return label
    return None


def normalize_type(value: object) -> DiscrepancyType:
    """Map a provider-supplied type onto the closed set; unknown values become ``other``."""
    return _match(value, _TYPE_PATTERNS) or DiscrepancyType.other


def normalize_priority(value: object) -> Priority:
    """Map a provider-supplied priority onto the closed set; unknown values become ``medium``."""
    return _match(value, _PRIORITY_PATTERNS) or Priority.medium


def normalize_shape(value: object) -> Shape:
    if isinstance(value, str) and value.strip().lower() == Shape.circle.value:
        return Shape.circle
    return Shape.rectangle
