# tests/unit/test_fallback_library.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from pixelmatch.schemas.labels import DiscrepancyStatus, DiscrepancyType, Shape
from pixelmatch.tools.vision.fallback import FALLBACK_LIBRARY_VERSION, FallbackLibrary, load_fallback_library


def test_packaged_library_is_versioned_five_items():
    lib = load_fallback_library()
    assert lib.version == FALLBACK_LIBRARY_VERSION
    assert len(lib) == 5
    items = lib.items
    assert all(d.status is DiscrepancyStatus.open for d in items)
    assert {d.type for d in items} >= {DiscrepancyType.color, DiscrepancyType.typography, DiscrepancyType.size}
    assert any(d.coordinates.shape is Shape.circle for d in items)


def test_items_are_fresh_copies():
    lib = load_fallback_library()
    first = lib.items
    first[0].title = "mutated"
    assert lib.items[0].title != "mutated"


def test_library_is_cached_per_path():
    assert load_fallback_library() is load_fallback_library()


def test_override_file_goes_through_normalizer(tmp_path: Path):
    path = tmp_path / "fallback.json"
    path.write_text(
        json.dumps({"version": 7, "discrepancies": [{"title": "Check footer", "type": "colour", "coordinates": {"x": 3}}]}),
        encoding="utf-8",
    )
    lib = load_fallback_library(str(path))
    assert lib.version == 7
    [item] = lib.items
    assert item.type is DiscrepancyType.color
    assert (item.coordinates.x, item.coordinates.width) == (3, 10)


@pytest.mark.parametrize("payload", [[], {"version": 1}, {"discrepancies": "nope"}])
def test_bad_payloads_raise(payload):
    with pytest.raises(ValueError):
        FallbackLibrary.from_payload(payload)
