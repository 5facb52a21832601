# pixelmatch/tools/vision/anthropic_provider.py
"""
Anthropic Vision Provider (secondary)

Same contract and prompts as the OpenAI provider, sent through the Messages
API with base64 image blocks. The first text block of the reply is parsed by
the shared response normalizer.

Environment
-----------
ANTHROPIC_API_KEY             : required
PIXELMATCH_ANTHROPIC_MODEL    : default "claude-3-7-sonnet-20250219"
PIXELMATCH_VISION_TIMEOUT_S   : default "60"
PIXELMATCH_VISION_MAX_RETRIES : default "1"
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

from pixelmatch.config import Settings, load_settings
from pixelmatch.core.errors import ProviderUnavailableError, provider_error_guard
from pixelmatch.core.log import get_logger, preview
from pixelmatch.core.media.uploads import read_image_b64
from pixelmatch.schemas.models import VisualDiscrepancy

from .normalize import parse_discrepancies
from .provider_base import (
    NO_DISCREPANCIES_SUMMARY,
    SYSTEM_PROMPT,
    USER_PROMPT,
    build_summary_prompt,
    call_with_retries,
)

log = get_logger(__name__)


class AnthropicProvider:
    name = "anthropic"

    def __init__(self, settings: Settings | None = None, *, client: Any | None = None) -> None:
        settings = settings or load_settings()
        self._model = settings.anthropic_model
        self._timeout_s = settings.vision_timeout_s
        self._max_retries = settings.vision_max_retries

        if client is not None:
            self._client = client
            return

        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ProviderUnavailableError("ANTHROPIC_API_KEY not set for AnthropicProvider.")
        try:
            from anthropic import Anthropic
        except ImportError as e:
            raise ProviderUnavailableError("anthropic SDK not available. Install `anthropic`.") from e

        self._client = Anthropic(api_key=api_key, timeout=self._timeout_s, max_retries=0)

    def analyze_image_differences(self, design_image_path: str, website_image_path: str) -> list[VisualDiscrepancy]:
        design_b64, design_type = read_image_b64(design_image_path)
        website_b64, website_type = read_image_b64(website_image_path)

        content = [
            {"type": "text", "text": USER_PROMPT},
            {"type": "image", "source": {"type": "base64", "media_type": design_type, "data": design_b64}},
            {"type": "image", "source": {"type": "base64", "media_type": website_type, "data": website_b64}},
        ]

        def _attempt() -> list[VisualDiscrepancy]:
            text = self._message(content, system=SYSTEM_PROMPT, max_tokens=4000)
            log.debug("anthropic raw response: %s", preview(text))
            return parse_discrepancies(text)

        return call_with_retries(_attempt, provider=self.name, max_retries=self._max_retries)

    def generate_summary(self, discrepancies: Sequence[VisualDiscrepancy]) -> str:
        if not discrepancies:
            return NO_DISCREPANCIES_SUMMARY
        text = self._message(build_summary_prompt(discrepancies), system=None, max_tokens=500).strip()
        if not text:
            raise ProviderUnavailableError("Empty summary from Anthropic")
        return text

    def _message(self, content: Any, *, system: str | None, max_tokens: int) -> str:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": content}],
            "timeout": self._timeout_s,
        }
        if system:
            kwargs["system"] = system
        with provider_error_guard():
            resp = self._client.messages.create(**kwargs)
            blocks = getattr(resp, "content", None) or []
            text = next((getattr(b, "text", "") for b in blocks if getattr(b, "type", "") == "text"), "")
        if not text:
            raise ProviderUnavailableError("Empty or invalid response from Anthropic")
        return text
