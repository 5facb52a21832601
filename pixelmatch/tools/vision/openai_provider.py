# pixelmatch/tools/vision/openai_provider.py
"""
OpenAI Vision Provider (primary)

Purpose
-------
Production `VisionProvider` using OpenAI multimodal chat completions. Both
images are sent as base64 data URLs in one request together with the shared
system/user prompts; the text answer goes through the response normalizer.

Environment
-----------
OPENAI_API_KEY                : required
PIXELMATCH_OPENAI_MODEL       : default "gpt-4o"
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
    SUMMARY_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
    USER_PROMPT,
    build_summary_prompt,
    call_with_retries,
)

log = get_logger(__name__)


class OpenAIProvider:
    name = "openai"

    def __init__(self, settings: Settings | None = None, *, client: Any | None = None) -> None:
        settings = settings or load_settings()
        self._model = settings.openai_model
        self._timeout_s = settings.vision_timeout_s
        self._max_retries = settings.vision_max_retries

        if client is not None:
            self._client = client
            return

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ProviderUnavailableError("OPENAI_API_KEY not set for OpenAIProvider.")
        try:
            from openai import OpenAI
        except ImportError as e:
            raise ProviderUnavailableError("OpenAI SDK not available. Install `openai>=1.0`.") from e

        # SDK-level retries are disabled; call_with_retries owns the policy.
        self._client = OpenAI(api_key=api_key, timeout=self._timeout_s, max_retries=0)

    # ---------- analysis ----------
    def analyze_image_differences(self, design_image_path: str, website_image_path: str) -> list[VisualDiscrepancy]:
        design_b64, design_type = read_image_b64(design_image_path)
        website_b64, website_type = read_image_b64(website_image_path)

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": USER_PROMPT},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{design_type};base64,{design_b64}", "detail": "high"},
                    },
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{website_type};base64,{website_b64}", "detail": "high"},
                    },
                ],
            },
        ]

        def _attempt() -> list[VisualDiscrepancy]:
            text = self._complete(messages, max_tokens=4000)
            log.debug("openai raw response: %s", preview(text))
            return parse_discrepancies(text)

        return call_with_retries(_attempt, provider=self.name, max_retries=self._max_retries)

    def generate_summary(self, discrepancies: Sequence[VisualDiscrepancy]) -> str:
        if not discrepancies:
            return NO_DISCREPANCIES_SUMMARY
        messages = [
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": build_summary_prompt(discrepancies)},
        ]
        text = self._complete(messages, max_tokens=300).strip()
        if not text:
            raise ProviderUnavailableError("Empty summary from OpenAI")
        return text

    # ---------- OpenAI call ----------
    def _complete(self, messages: list[dict[str, Any]], *, max_tokens: int) -> str:
        with provider_error_guard():
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=max_tokens,
                timeout=self._timeout_s,
            )
            content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise ProviderUnavailableError("Empty response from OpenAI")
        return content
