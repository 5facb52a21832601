# tests/utils.py
"""
Single source of truth for test data, factories, and fake providers.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace
from typing import Any

from PIL import Image

from pixelmatch.config import Settings
from pixelmatch.core.errors import ProviderUnavailableError
from pixelmatch.schemas.labels import DiscrepancyType, Priority
from pixelmatch.schemas.models import Coordinates, VisualDiscrepancy

# -----------------------------
# Canonical payloads
# -----------------------------

# The one-item provider answer used across orchestrator tests
ONE_HIGH_COLOR_ITEM = [
    {
        "title": "Button color",
        "description": "Primary button is darker than the mockup.",
        "type": "color",
        "priority": "high",
        "coordinates": {"x": 10, "y": 20, "width": 30, "height": 5, "shape": "rectangle"},
    }
]

ONE_HIGH_COLOR_TEXT = json.dumps(ONE_HIGH_COLOR_ITEM)


# -----------------------------
# Images
# -----------------------------


def png_bytes(size: tuple[int, int] = (32, 32), color: tuple[int, int, int] = (200, 200, 200)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color=color).save(buf, format="PNG")
    return buf.getvalue()


def jpeg_bytes(size: tuple[int, int] = (32, 32), color: tuple[int, int, int] = (20, 120, 220)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color=color).save(buf, format="JPEG")
    return buf.getvalue()


def make_png(directory: Path, name: str, color: tuple[int, int, int] = (200, 200, 200)) -> Path:
    path = directory / name
    path.write_bytes(png_bytes(color=color))
    return path


# -----------------------------
# Domain factories
# -----------------------------


def make_visual_discrepancy(**overrides: Any) -> VisualDiscrepancy:
    base: dict[str, Any] = {
        "title": "Button color",
        "description": "Primary button is darker than the mockup.",
        "type": DiscrepancyType.color,
        "priority": Priority.high,
        "coordinates": Coordinates(x=10, y=20, width=30, height=5),
    }
    base.update(overrides)
    return VisualDiscrepancy(**base)


def make_settings(**overrides: Any) -> Settings:
    base: dict[str, Any] = {
        "provider_preference": "primary",
        "primary_provider": "openai",
        "secondary_provider": "anthropic",
        "vision_max_retries": 0,
    }
    base.update(overrides)
    return Settings(**base)


# -----------------------------
# Fake providers
# -----------------------------


class FakeProvider:
    """
    Scripted VisionProvider.

    `items` is returned from every analysis call unless `error` is set, in which
    case the error is raised. Calls are recorded for assertions.
    """

    def __init__(
        self,
        name: str,
        items: Sequence[VisualDiscrepancy] = (),
        *,
        error: Exception | None = None,
        summary: str | None = "Provider summary.",
        summary_error: Exception | None = None,
    ) -> None:
        self.name = name
        self._items = list(items)
        self._error = error
        self._summary = summary
        self._summary_error = summary_error
        self.calls: list[tuple[str, str]] = []
        self.summary_calls = 0

    def analyze_image_differences(self, design_image_path: str, website_image_path: str) -> list[VisualDiscrepancy]:
        self.calls.append((design_image_path, website_image_path))
        if self._error is not None:
            raise self._error
        return [d.model_copy(deep=True) for d in self._items]

    def generate_summary(self, discrepancies: Sequence[VisualDiscrepancy]) -> str:
        self.summary_calls += 1
        if self._summary_error is not None:
            raise self._summary_error
        return self._summary or ""


class FakeProviderFactory:
    """provider_factory stand-in: returns registered fakes, raises for unknown names."""

    def __init__(self, *providers: FakeProvider) -> None:
        self.providers = {p.name: p for p in providers}
        self.built: list[str] = []

    def __call__(self, name: str, settings: Settings) -> FakeProvider:
        self.built.append(name)
        if name not in self.providers:
            raise ProviderUnavailableError(f"{name} not configured")
        return self.providers[name]


# -----------------------------
# Fake SDK clients (no network)
# -----------------------------


class FakeOpenAIClient:
    """Mimics `client.chat.completions.create(...)`; replies are consumed in order."""

    def __init__(self, *replies: str | Exception) -> None:
        self._replies = list(replies)
        self.requests: list[dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs: Any) -> Any:
        self.requests.append(kwargs)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeAnthropicClient:
    """Mimics `client.messages.create(...)`; replies are consumed in order."""

    def __init__(self, *replies: str | Exception) -> None:
        self._replies = list(replies)
        self.requests: list[dict[str, Any]] = []
        self.messages = SimpleNamespace(create=self._create)

    def _create(self, **kwargs: Any) -> Any:
        self.requests.append(kwargs)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=reply)])
