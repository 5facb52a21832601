# pixelmatch/tools/vision/__init__.py
"""
Vision tools package

Re-exports the provider interface/implementations, the response normalizer
and the fallback library, so callers can do:

    from pixelmatch.tools.vision import (
        VisionProvider,
        OpenAIProvider,
        AnthropicProvider,
        MockVisionProvider,
        make_provider,
        parse_discrepancies,
        load_fallback_library,
    )
"""

from __future__ import annotations

from collections.abc import Callable

from pixelmatch.config import Settings
from pixelmatch.core.errors import ProviderUnavailableError

# Concrete providers
from .anthropic_provider import AnthropicProvider

# Fallback library
from .fallback import FallbackLibrary, load_fallback_library
from .mock_provider import MockVisionProvider

# Response normalizer
from .normalize import extract_json_array, normalize_items, parse_discrepancies
from .openai_provider import OpenAIProvider

# Provider protocol / base
from .provider_base import VisionProvider

ProviderFactory = Callable[[Settings], VisionProvider]

PROVIDERS: dict[str, ProviderFactory] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "mock": MockVisionProvider,
}


def make_provider(name: str, settings: Settings) -> VisionProvider:
    """Construct a registered provider; unknown names are reported as unavailable."""
    factory = PROVIDERS.get(name.strip().lower())
    if factory is None:
        raise ProviderUnavailableError(f"Unknown vision provider: {name!r}")
    return factory(settings)


__all__ = [
    "VisionProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "MockVisionProvider",
    "PROVIDERS",
    "ProviderFactory",
    "make_provider",
    "extract_json_array",
    "normalize_items",
    "parse_discrepancies",
    "FallbackLibrary",
    "load_fallback_library",
]
