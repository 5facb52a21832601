# tests/conftest.py
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from pixelmatch.core.health import ProviderHealth, reset_default_health
from pixelmatch.schemas.models import ProjectCreate
from pixelmatch.storage.memory import MemStorage
from pixelmatch.tools.vision.fallback import load_fallback_library
from tests.utils import make_png, make_settings

_ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "PIXELMATCH_VISION_PROVIDER",
    "PIXELMATCH_PRIMARY_PROVIDER",
    "PIXELMATCH_SECONDARY_PROVIDER",
    "PIXELMATCH_OPENAI_MODEL",
    "PIXELMATCH_ANTHROPIC_MODEL",
    "PIXELMATCH_VISION_TIMEOUT_S",
    "PIXELMATCH_VISION_MAX_RETRIES",
    "PIXELMATCH_BREAKER_RESET_S",
    "PIXELMATCH_USE_DATABASE",
    "PIXELMATCH_DATABASE_URL",
    "PIXELMATCH_UPLOADS_DIR",
    "PIXELMATCH_FALLBACK_PATH",
    "PIXELMATCH_LOG_LEVEL",
    "PIXELMATCH_LOG_FILE",
)


# -------- Hermetic environment (no keys, no overrides) --------
@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    load_fallback_library.cache_clear()
    reset_default_health()
    yield
    load_fallback_library.cache_clear()
    # Handlers installed by configure_logging hold the captured stderr of the test that created them
    root = logging.getLogger("pixelmatch")
    for h in list(root.handlers):
        if getattr(h, "_pixelmatch", False):
            root.removeHandler(h)
            h.close()


# -------- Images --------
@pytest.fixture
def design_png(tmp_path: Path) -> Path:
    return make_png(tmp_path, "homepage_design.png", color=(250, 250, 250))


@pytest.fixture
def website_png(tmp_path: Path) -> Path:
    return make_png(tmp_path, "homepage_live.png", color=(240, 240, 240))


# -------- Core objects --------
@pytest.fixture
def storage() -> MemStorage:
    return MemStorage()


@pytest.fixture
def project(storage):
    return storage.create_project(ProjectCreate(name="Homepage Redesign"))


@pytest.fixture
def health() -> ProviderHealth:
    return ProviderHealth()


@pytest.fixture
def settings_factory(tmp_path: Path):
    """Factory for Settings with test defaults (no SDK retries, tmp uploads dir)."""

    def _factory(**overrides):
        overrides.setdefault("uploads_dir", str(tmp_path / "uploads"))
        return make_settings(**overrides)

    return _factory


@pytest.fixture
def settings(settings_factory):
    return settings_factory()
