# pixelmatch/config.py
"""
Runtime settings for PixelMatch.

Goals
-----
- One validated settings object (Pydantic), built from the environment.
- Every knob has a working default so tests and local runs need no setup.
- API keys stay under their vendor names (OPENAI_API_KEY, ANTHROPIC_API_KEY)
  and are read by the providers themselves, never stored here.

Environment (prefix PIXELMATCH_)
--------------------------------
- VISION_PROVIDER     -> provider_preference ("primary" | "secondary" | slot name)
- PRIMARY_PROVIDER    -> primary_provider   (default "openai")
- SECONDARY_PROVIDER  -> secondary_provider (default "anthropic")
- OPENAI_MODEL, ANTHROPIC_MODEL
- VISION_TIMEOUT_S, VISION_MAX_RETRIES
- BREAKER_RESET_S     -> breaker_reset_s (unset = breaker never resets)
- USE_DATABASE, DATABASE_URL
- UPLOADS_DIR, FALLBACK_PATH
- LOG_LEVEL, LOG_FILE

Public API
----------
- class Settings(BaseModel)
- class SettingsLoader: load(environ=None) -> Settings
- function load_settings() -> Settings  (convenience)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

Preference = Literal["primary", "secondary"]

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Validated runtime configuration."""

    provider_preference: Preference = Field("primary", description="Which provider slot to try first.")
    primary_provider: str = Field("openai", description="Provider name registered in the primary slot.")
    secondary_provider: str = Field("anthropic", description="Provider name registered in the secondary slot.")

    openai_model: str = Field("gpt-4o", description="OpenAI multimodal model.")
    anthropic_model: str = Field("claude-3-7-sonnet-20250219", description="Anthropic vision model.")
    vision_timeout_s: float = Field(60.0, gt=0, description="Per-request timeout for provider calls.")
    vision_max_retries: int = Field(1, ge=0, le=5, description="Bounded retries per provider call.")
    breaker_reset_s: float | None = Field(
        None, gt=0, description="Seconds before a tripped provider breaker closes again; None = never."
    )

    use_database: bool = Field(False, description="Use the SQLAlchemy gateway instead of in-memory maps.")
    database_url: str = Field("sqlite:///pixelmatch.db", description="SQLAlchemy database URL.")

    uploads_dir: str = Field("uploads", description="Directory where uploaded images are saved.")
    fallback_path: str | None = Field(None, description="Optional JSON file overriding the fallback library.")

    log_level: str = Field("INFO", description="Logging level for the pixelmatch logger tree.")
    log_file: str | None = Field(None, description="Optional rotating log file.")

    @field_validator("primary_provider", "secondary_provider")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def preferred_provider(self) -> str:
        return self.secondary_provider if self.provider_preference == "secondary" else self.primary_provider


@dataclass(frozen=True)
class SettingsLoader:
    """
    Environment-first settings loader.

    Unknown or empty variables are ignored; invalid values raise ValueError with
    the Pydantic validation message.
    """

    env_prefix: str = "PIXELMATCH_"

    def load(self, environ: Mapping[str, str] | None = None, **overrides: Any) -> Settings:
        env = os.environ if environ is None else environ
        data = self._from_env(env)
        data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return Settings(**data)
        except ValidationError as e:
            raise ValueError(f"Invalid PixelMatch settings: {e}") from e

    # ---------- internals ----------

    def _get(self, env: Mapping[str, str], key: str) -> str | None:
        val = env.get(self.env_prefix + key)
        if val is None or not val.strip():
            return None
        return val.strip()

    def _from_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        data: dict[str, Any] = {}

        primary = self._get(env, "PRIMARY_PROVIDER")
        secondary = self._get(env, "SECONDARY_PROVIDER")
        if primary:
            data["primary_provider"] = primary
        if secondary:
            data["secondary_provider"] = secondary

        pref = self._get(env, "VISION_PROVIDER")
        if pref:
            data["provider_preference"] = resolve_preference(pref, secondary or "anthropic")

        for key, field in (
            ("OPENAI_MODEL", "openai_model"),
            ("ANTHROPIC_MODEL", "anthropic_model"),
            ("VISION_TIMEOUT_S", "vision_timeout_s"),
            ("VISION_MAX_RETRIES", "vision_max_retries"),
            ("BREAKER_RESET_S", "breaker_reset_s"),
            ("DATABASE_URL", "database_url"),
            ("UPLOADS_DIR", "uploads_dir"),
            ("FALLBACK_PATH", "fallback_path"),
            ("LOG_LEVEL", "log_level"),
            ("LOG_FILE", "log_file"),
        ):
            val = self._get(env, key)
            if val is not None:
                data[field] = val

        use_db = self._get(env, "USE_DATABASE")
        if use_db is not None:
            data["use_database"] = use_db.lower() in _TRUTHY

        return data


def resolve_preference(value: str, secondary_name: str) -> Preference:
    """Accept "primary"/"secondary" or the secondary slot's provider name; anything else is primary."""
    v = value.strip().lower()
    if v in ("secondary", secondary_name.lower()):
        return "secondary"
    return "primary"


def load_settings(**overrides: Any) -> Settings:
    return SettingsLoader().load(**overrides)
