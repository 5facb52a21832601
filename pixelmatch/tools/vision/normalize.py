# pixelmatch/tools/vision/normalize.py
"""
Provider Response Normalizer

Purpose
-------
Turn free-form model text into validated `VisualDiscrepancy` items with a
small, explicit grammar instead of ad-hoc string scanning.

Grammar
-------
1) Strip a surrounding Markdown fence (``` or ```json).
2) Locate the first "[" and the last "]"; the substring between them
   (inclusive) is the candidate. No brackets -> AnalysisParseError.
3) Strict `json.loads` of the candidate. Failure -> AnalysisParseError.
4) The result must be a list. Anything else -> AnalysisParseError.
5) Field-level defaulting per item (non-dict items are dropped):
     title        -> "Untitled discrepancy" if missing/blank
     description  -> ""
     type         -> closed set via aliases, else "other"
     priority     -> closed set via aliases, else "medium"
     coordinates  -> x=0, y=0, width=10, height=10, shape=rectangle
                     for any missing or non-numeric field
     status       -> always "open"

A wrapper object such as {"discrepancies": [...]} is handled by step 2,
since its array is the outermost bracket pair.

Pure functions; no IO.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

from pixelmatch.core.errors import AnalysisParseError
from pixelmatch.schemas.labels import DiscrepancyStatus, normalize_priority, normalize_shape, normalize_type
from pixelmatch.schemas.models import Coordinates, VisualDiscrepancy

DEFAULT_TITLE = "Untitled discrepancy"
COORDINATE_DEFAULTS: dict[str, float] = {"x": 0.0, "y": 0.0, "width": 10.0, "height": 10.0}

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fence(text: str) -> str:
    s = text.strip()
    if s.startswith("```"):
        s = _FENCE_OPEN.sub("", s, count=1)
        s = _FENCE_CLOSE.sub("", s, count=1)
    return s


def extract_json_array(text: str) -> list[Any]:
    """Steps 1-4 of the grammar. Returns the raw parsed list."""
    if not isinstance(text, str):
        raise AnalysisParseError("Provider returned non-string response.")

    s = strip_code_fence(text)
    start = s.find("[")
    end = s.rfind("]")
    if start == -1 or end <= start:
        raise AnalysisParseError("No JSON array found in provider output.")

    try:
        loaded = json.loads(s[start : end + 1])
    except json.JSONDecodeError as e:
        raise AnalysisParseError(f"Invalid JSON array in provider output: {e}") from e

    if not isinstance(loaded, list):
        raise AnalysisParseError("Expected a JSON array in provider output.")
    return loaded


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or value is None:
        return default
    try:
        f = float(value)
    except (TypeError, ValueError):
        return default
    return f if math.isfinite(f) else default


def normalize_coordinates(raw: Any) -> Coordinates:
    src: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    values = {k: _number(src.get(k), d) for k, d in COORDINATE_DEFAULTS.items()}
    return Coordinates(**values, shape=normalize_shape(src.get("shape")))


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_item(item: Mapping[str, Any]) -> VisualDiscrepancy:
    return VisualDiscrepancy(
        title=_text(item.get("title")) or DEFAULT_TITLE,
        description=_text(item.get("description")),
        type=normalize_type(item.get("type")),
        priority=normalize_priority(item.get("priority")),
        status=DiscrepancyStatus.open,
        coordinates=normalize_coordinates(item.get("coordinates")),
    )


def normalize_items(items: Iterable[Any]) -> list[VisualDiscrepancy]:
    return [normalize_item(it) for it in items if isinstance(it, Mapping)]


def parse_discrepancies(text: str) -> list[VisualDiscrepancy]:
    """Full grammar: extract, parse, validate shape, default fields."""
    return normalize_items(extract_json_array(text))
