# tests/unit/test_response_normalizer.py
from __future__ import annotations

import json

import pytest

from pixelmatch.core.errors import AnalysisParseError
from pixelmatch.schemas.labels import DiscrepancyStatus, DiscrepancyType, Priority, Shape
from pixelmatch.tools.vision.normalize import (
    DEFAULT_TITLE,
    extract_json_array,
    normalize_coordinates,
    parse_discrepancies,
    strip_code_fence,
)
from tests.utils import ONE_HIGH_COLOR_TEXT


def test_single_item_parses_with_open_status():
    items = parse_discrepancies(ONE_HIGH_COLOR_TEXT)
    assert len(items) == 1
    d = items[0]
    assert d.title == "Button color"
    assert d.type is DiscrepancyType.color
    assert d.priority is Priority.high
    assert d.status is DiscrepancyStatus.open
    assert (d.coordinates.x, d.coordinates.y, d.coordinates.width, d.coordinates.height) == (10, 20, 30, 5)


def test_fenced_json_is_accepted():
    text = f"```json\n{ONE_HIGH_COLOR_TEXT}\n```"
    assert strip_code_fence(text) == ONE_HIGH_COLOR_TEXT
    assert len(parse_discrepancies(text)) == 1


def test_prose_around_array_is_ignored():
    text = f"Here are the issues I found:\n{ONE_HIGH_COLOR_TEXT}\nLet me know if you need more."
    assert parse_discrepancies(text)[0].title == "Button color"


def test_wrapper_object_yields_inner_array():
    text = json.dumps({"discrepancies": json.loads(ONE_HIGH_COLOR_TEXT)})
    assert len(parse_discrepancies(text)) == 1


@pytest.mark.parametrize(
    "text",
    [
        "",
        "I could not compare these images.",
        "[not json at all]",
        '[{"title": "unterminated"',
        "] backwards [",
    ],
)
def test_unlocatable_or_invalid_arrays_raise(text):
    with pytest.raises(AnalysisParseError):
        parse_discrepancies(text)


def test_non_string_response_raises():
    with pytest.raises(AnalysisParseError):
        extract_json_array(None)  # type: ignore[arg-type]


def test_empty_array_is_valid_and_empty():
    assert parse_discrepancies("[]") == []


def test_missing_width_defaults_to_ten():
    text = json.dumps([{"title": "Logo", "type": "size", "priority": "low", "coordinates": {"x": 5, "y": 5, "height": 4}}])
    c = parse_discrepancies(text)[0].coordinates
    assert c.width == 10
    assert (c.x, c.y, c.height) == (5, 5, 4)
    assert c.shape is Shape.rectangle


def test_missing_coordinates_use_all_defaults():
    c = parse_discrepancies('[{"title": "Spacing"}]')[0].coordinates
    assert (c.x, c.y, c.width, c.height, c.shape) == (0, 0, 10, 10, Shape.rectangle)


def test_non_numeric_coordinates_fall_back_per_field():
    c = normalize_coordinates({"x": "12.5", "y": "top", "width": True, "height": float("nan"), "shape": "Circle"})
    assert c.x == 12.5
    assert c.y == 0
    assert c.width == 10
    assert c.height == 10
    assert c.shape is Shape.circle


def test_unknown_labels_and_missing_title_are_defaulted():
    text = json.dumps([{"type": "animation", "priority": "urgent-ish", "description": "  spins  "}])
    d = parse_discrepancies(text)[0]
    assert d.title == DEFAULT_TITLE
    assert d.description == "spins"
    assert d.type is DiscrepancyType.other
    assert d.priority is Priority.medium


def test_label_aliases_map_into_closed_sets():
    text = json.dumps(
        [
            {"title": "a", "type": "Colour", "priority": "Critical"},
            {"title": "b", "type": "font", "priority": "minor"},
            {"title": "c", "type": "alignment", "priority": "moderate"},
            {"title": "d", "type": "spacing", "priority": "LOW"},
        ]
    )
    got = [(d.type, d.priority) for d in parse_discrepancies(text)]
    assert got == [
        (DiscrepancyType.color, Priority.high),
        (DiscrepancyType.typography, Priority.low),
        (DiscrepancyType.position, Priority.medium),
        (DiscrepancyType.layout, Priority.low),
    ]


def test_provider_supplied_status_is_overridden():
    d = parse_discrepancies('[{"title": "x", "status": "resolved"}]')[0]
    assert d.status is DiscrepancyStatus.open


def test_non_object_items_are_dropped():
    items = parse_discrepancies('["just text", 3, {"title": "kept"}, null]')
    assert [d.title for d in items] == ["kept"]


def test_counts_are_not_truncated():
    many = [{"title": f"issue {i}"} for i in range(9)]
    assert len(parse_discrepancies(json.dumps(many))) == 9
