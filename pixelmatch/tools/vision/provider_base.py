# pixelmatch/tools/vision/provider_base.py
"""
Vision Provider Interface

Purpose
-------
Define the provider-agnostic contract for design-vs-website analysis and the
prompt text every provider sends, so the two remote backends stay aligned.

Design
------
- Protocol `VisionProvider` with two operations:
    analyze_image_differences(design, website) -> list[VisualDiscrepancy]
    generate_summary(discrepancies) -> str
- `name` identifies the provider for routing and the circuit breaker.
- `call_with_retries` is the shared bounded-retry loop (timeout is enforced
  by each SDK client; retries and backoff live here).

Invariants & Guardrails
-----------------------
- Providers raise typed errors (ImageReadError, AnalysisParseError,
  ProviderUnavailableError); they never return partially parsed output.
- Every returned item has status "open".
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Sequence
from typing import Protocol, TypeVar

from pixelmatch.core.errors import AnalysisParseError, ImageReadError, classify_provider_error
from pixelmatch.core.log import get_logger
from pixelmatch.schemas.labels import Priority
from pixelmatch.schemas.models import VisualDiscrepancy

T = TypeVar("T")

log = get_logger(__name__)

SYSTEM_PROMPT = """You are an expert UI/UX analyst specializing in comparing design mockups with their implemented websites.
You'll analyze two images: a design mockup and its website implementation, identifying visual discrepancies.

Focus on the following types of discrepancies:
- color: Different colors used in elements (e.g., buttons, text, backgrounds)
- size: Differences in size of elements (e.g., buttons, images, text)
- typography: Font style, size, weight, spacing, or type differences
- position: Misalignment or different positioning of elements
- layout: Overall structural differences in layout
- other: Any other visual discrepancies not covered above

For each discrepancy, determine a priority:
- high: Critical issues that significantly impact user experience or brand identity
- medium: Important issues that should be fixed but don't break functionality
- low: Minor cosmetic issues

Provide specific, actionable feedback for each discrepancy."""

USER_PROMPT = """I need to compare these two images: the first is the design mockup, the second is the implemented website. Identify all visual discrepancies between them. Respond with JSON in the following format (return exactly 3-6 discrepancies):
[
  {
    "title": "Brief description of discrepancy",
    "description": "Detailed explanation of the issue",
    "type": "color|size|typography|position|layout|other",
    "priority": "high|medium|low",
    "coordinates": {
      "x": relative x position (0-100),
      "y": relative y position (0-100),
      "width": relative width (0-100),
      "height": relative height (0-100),
      "shape": "rectangle|circle"
    }
  }
]
Return ONLY the JSON array (no code fences, no prose)."""

SUMMARY_SYSTEM_PROMPT = "You are an expert UI/UX analyst writing summaries of design implementation issues."

NO_DISCREPANCIES_SUMMARY = "No discrepancies found between the design and implementation."


class VisionProvider(Protocol):
    name: str

    def analyze_image_differences(self, design_image_path: str, website_image_path: str) -> list[VisualDiscrepancy]: ...

    def generate_summary(self, discrepancies: Sequence[VisualDiscrepancy]) -> str: ...


def build_summary_prompt(discrepancies: Sequence[VisualDiscrepancy]) -> str:
    payload = json.dumps([d.model_dump(mode="json") for d in discrepancies], indent=2)
    return (
        "Based on the following discrepancies found between a design mockup and website implementation, "
        "write a concise professional summary (max 150 words) that highlights the main issues and their impact:\n\n"
        f"{payload}"
    )


def count_by_priority(discrepancies: Sequence[VisualDiscrepancy]) -> dict[Priority, int]:
    counts = {p: 0 for p in Priority}
    for d in discrepancies:
        counts[Priority(d.priority)] += 1
    return counts


def call_with_retries(
    fn: Callable[[], T],
    *,
    provider: str,
    max_retries: int,
    sleep: Callable[[float], None] | None = None,
) -> T:
    """
    Run `fn` up to 1 + max_retries times with linear backoff (0.5s, 1.0s, ... capped at 2s).

    Image read errors are not retried: the file will not appear between attempts.
    The last error is re-raised as a typed PixelmatchError.
    """
    last_err: Exception | None = None
    for attempt in range(max_retries + 1):
        try:
            return fn()
        except ImageReadError:
            raise
        except Exception as e:  # noqa: BLE001
            last_err = e
            log.warning("%s request attempt %d failed: %s", provider, attempt + 1, e)
            if attempt < max_retries:
                (sleep or time.sleep)(min(0.5 * (attempt + 1), 2.0))
    assert last_err is not None
    if isinstance(last_err, AnalysisParseError):
        raise last_err
    raise classify_provider_error(last_err) from last_err
