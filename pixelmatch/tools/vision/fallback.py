# pixelmatch/tools/vision/fallback.py
"""
Static fallback library.

Generic, non-AI findings persisted when no provider produced results. The
canonical list ships as versioned data (pixelmatch/data/fallback_discrepancies.json);
deployments may point PIXELMATCH_FALLBACK_PATH at their own file with the same
shape. The list size is whatever the file holds; nothing here enforces a count.

File shape
----------
{"version": <int>, "discrepancies": [ {title, description, type, priority, coordinates}, ... ]}

Items go through the same normalizer as provider output, so the fallback set
obeys the same defaults and closed sets.
"""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path

from pixelmatch.core.log import get_logger
from pixelmatch.schemas.models import VisualDiscrepancy

from .normalize import normalize_items

log = get_logger(__name__)

_PACKAGE_DATA = "fallback_discrepancies.json"

# Version of the packaged list; bump together with the JSON file
FALLBACK_LIBRARY_VERSION = 2


class FallbackLibrary:
    def __init__(self, version: int, items: list[VisualDiscrepancy]) -> None:
        self.version = version
        self._items = items

    @property
    def items(self) -> list[VisualDiscrepancy]:
        # Fresh copies so callers can't mutate the shared library
        return [d.model_copy(deep=True) for d in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"FallbackLibrary(version={self.version}, size={len(self._items)})"

    @classmethod
    def from_payload(cls, payload: object) -> FallbackLibrary:
        if not isinstance(payload, dict) or not isinstance(payload.get("discrepancies"), list):
            raise ValueError("Fallback library must be an object with a 'discrepancies' list.")
        try:
            version = int(payload.get("version", 1))
        except (TypeError, ValueError):
            raise ValueError(f"Fallback library version must be an integer, got {payload.get('version')!r}.") from None
        return cls(version, normalize_items(payload["discrepancies"]))


def _read_packaged() -> dict:
    text = resources.files("pixelmatch.data").joinpath(_PACKAGE_DATA).read_text(encoding="utf-8")
    return json.loads(text)


@lru_cache(maxsize=8)
def load_fallback_library(path: str | None = None) -> FallbackLibrary:
    """
    Load the library from `path`, or the packaged default when None.

    Raises OSError for an unreadable override and ValueError (json.JSONDecodeError
    included) for one with the wrong shape.
    """
    if path is None:
        lib = FallbackLibrary.from_payload(_read_packaged())
    else:
        lib = FallbackLibrary.from_payload(json.loads(Path(path).read_text(encoding="utf-8")))
    log.debug("loaded %r from %s", lib, path or "package data")
    return lib
