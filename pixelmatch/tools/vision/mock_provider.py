# pixelmatch/tools/vision/mock_provider.py
"""
Mock Vision Provider

Purpose
-------
Deterministic, network-free provider that derives findings from the *website*
screenshot's filename. Lets local dev and CI exercise the full comparison path
(persistence, summary, audit trail) without API keys.

Design
------
- Pure string-pattern rules over the filename stem (not pixels).
- Still reads both images, so missing files raise ImageReadError exactly like
  the real providers.
- Register it in a slot with PIXELMATCH_PRIMARY_PROVIDER=mock (or SECONDARY).

Usage
-----
prov = MockVisionProvider()
prov.analyze_image_differences("design.png", "site_button_color_font.png")
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from pixelmatch.core.media.uploads import read_image_b64
from pixelmatch.schemas.labels import DiscrepancyType, Priority, Shape
from pixelmatch.schemas.models import Coordinates, VisualDiscrepancy

from .provider_base import NO_DISCREPANCIES_SUMMARY, count_by_priority


class MockVisionProvider:
    name = "mock"

    def __init__(self, *_args: object, **_kwargs: object) -> None:
        pass

    def analyze_image_differences(self, design_image_path: str, website_image_path: str) -> list[VisualDiscrepancy]:
        read_image_b64(design_image_path)
        read_image_b64(website_image_path)

        name = Path(website_image_path).stem.lower()
        out: list[VisualDiscrepancy] = []

        if "color" in name or "colour" in name:
            out.append(_vd("Button color mismatch", "Primary button uses a different shade than the design.",
                           DiscrepancyType.color, Priority.high, 40, 30, 20, 8))
        if "font" in name or "type" in name:
            out.append(_vd("Heading font weight differs", "Heading renders lighter than the design.",
                           DiscrepancyType.typography, Priority.medium, 10, 12, 60, 10))
        if "logo" in name or "size" in name:
            out.append(_vd("Logo size difference", "Logo is smaller than specified.",
                           DiscrepancyType.size, Priority.medium, 4, 3, 12, 8, Shape.circle))
        if "shift" in name or "align" in name:
            out.append(_vd("Navigation misaligned", "Menu items are offset to the right.",
                           DiscrepancyType.position, Priority.low, 55, 2, 40, 6))
        if "spacing" in name or "layout" in name:
            out.append(_vd("Section spacing deviates", "Gap between hero and features is larger.",
                           DiscrepancyType.layout, Priority.low, 0, 45, 100, 15))

        return out

    def generate_summary(self, discrepancies: Sequence[VisualDiscrepancy]) -> str:
        if not discrepancies:
            return NO_DISCREPANCIES_SUMMARY
        counts = count_by_priority(discrepancies)
        titles = ", ".join(d.title for d in discrepancies)
        return f"Mock analysis: {len(discrepancies)} issues ({counts[Priority.high]} high priority): {titles}."


def _vd(
    title: str,
    description: str,
    type_: DiscrepancyType,
    priority: Priority,
    x: float,
    y: float,
    w: float,
    h: float,
    shape: Shape = Shape.rectangle,
) -> VisualDiscrepancy:
    return VisualDiscrepancy(
        title=title,
        description=description,
        type=type_,
        priority=priority,
        coordinates=Coordinates(x=x, y=y, width=w, height=h, shape=shape),
    )
