# tests/unit/test_settings_loader.py
from __future__ import annotations

import pytest

from pixelmatch.config import SettingsLoader, load_settings, resolve_preference


def test_defaults_without_environment():
    s = SettingsLoader().load(environ={})
    assert s.provider_preference == "primary"
    assert (s.primary_provider, s.secondary_provider) == ("openai", "anthropic")
    assert s.openai_model == "gpt-4o"
    assert s.vision_timeout_s == 60
    assert s.vision_max_retries == 1
    assert s.breaker_reset_s is None
    assert s.use_database is False
    assert s.database_url == "sqlite:///pixelmatch.db"
    assert s.uploads_dir == "uploads"
    assert s.preferred_provider == "openai"


def test_environment_values_are_parsed():
    env = {
        "PIXELMATCH_VISION_PROVIDER": "secondary",
        "PIXELMATCH_SECONDARY_PROVIDER": " Mock ",
        "PIXELMATCH_VISION_TIMEOUT_S": "15",
        "PIXELMATCH_VISION_MAX_RETRIES": "2",
        "PIXELMATCH_BREAKER_RESET_S": "300",
        "PIXELMATCH_USE_DATABASE": "yes",
        "PIXELMATCH_DATABASE_URL": "sqlite:///tmp.db",
        "PIXELMATCH_LOG_LEVEL": "debug",
    }
    s = SettingsLoader().load(environ=env)
    assert s.provider_preference == "secondary"
    assert s.secondary_provider == "mock"
    assert s.preferred_provider == "mock"
    assert s.vision_timeout_s == 15
    assert s.vision_max_retries == 2
    assert s.breaker_reset_s == 300
    assert s.use_database is True
    assert s.database_url == "sqlite:///tmp.db"


def test_blank_values_are_ignored():
    s = SettingsLoader().load(environ={"PIXELMATCH_OPENAI_MODEL": "   ", "PIXELMATCH_USE_DATABASE": ""})
    assert s.openai_model == "gpt-4o"
    assert s.use_database is False


def test_preference_by_provider_name():
    s = SettingsLoader().load(environ={"PIXELMATCH_VISION_PROVIDER": "anthropic"})
    assert s.provider_preference == "secondary"
    assert resolve_preference("openai", "anthropic") == "primary"
    assert resolve_preference("something-else", "anthropic") == "primary"


def test_invalid_values_raise_value_error():
    with pytest.raises(ValueError):
        SettingsLoader().load(environ={"PIXELMATCH_VISION_TIMEOUT_S": "-1"})
    with pytest.raises(ValueError):
        SettingsLoader().load(environ={"PIXELMATCH_VISION_MAX_RETRIES": "many"})


def test_overrides_win_and_none_is_skipped(monkeypatch):
    monkeypatch.setenv("PIXELMATCH_LOG_LEVEL", "WARNING")
    s = load_settings(log_level=None, uploads_dir="elsewhere")
    assert s.log_level == "WARNING"
    assert s.uploads_dir == "elsewhere"


def test_custom_prefix():
    s = SettingsLoader(env_prefix="PM_").load(environ={"PM_UPLOADS_DIR": "u"})
    assert s.uploads_dir == "u"
