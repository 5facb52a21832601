# pixelmatch/core/reporting.py
"""
Deterministic text for comparison summaries and audit entries.

Used when no provider summary is available (fallback path, provider error)
and for every `comparison_run` activity.
"""

from __future__ import annotations

from collections.abc import Sequence

from pixelmatch.schemas.labels import Priority
from pixelmatch.schemas.models import VisualDiscrepancy
from pixelmatch.tools.vision.provider_base import NO_DISCREPANCIES_SUMMARY, count_by_priority

FALLBACK_NOTICE = (
    "AI analysis was unavailable, so these are generic checks rather than findings "
    "from the uploaded images."
)


def _plural(n: int, word: str = "discrepancy", plural: str = "discrepancies") -> str:
    return f"{n} {word if n == 1 else plural}"


def templated_summary(discrepancies: Sequence[VisualDiscrepancy], *, used_fallback: bool = False) -> str:
    """Summary built from priority counts alone."""
    if not discrepancies:
        body = NO_DISCREPANCIES_SUMMARY
    else:
        c = count_by_priority(discrepancies)
        body = (
            f"Found {_plural(len(discrepancies))} between the design and implementation: "
            f"{c[Priority.high]} high, {c[Priority.medium]} medium and {c[Priority.low]} low priority."
        )
        if c[Priority.high]:
            body += " Address the high-priority issues first."
    return f"{FALLBACK_NOTICE} {body}" if used_fallback else body


def activity_description(discrepancies: Sequence[VisualDiscrepancy], *, used_fallback: bool) -> str:
    """Wording of the `comparison_run` audit entry for each outcome."""
    total = len(discrepancies)
    if used_fallback:
        return (
            f"AI analysis unavailable; {_plural(total, 'generic discrepancy', 'generic discrepancies')} "
            "from the fallback library were added for manual review"
        )
    if total == 0:
        return "AI analysis found no discrepancies between design and implementation"
    high = count_by_priority(discrepancies)[Priority.high]
    return (
        f"AI analysis found {_plural(total)} between design and implementation "
        f"({high} high priority)"
    )
