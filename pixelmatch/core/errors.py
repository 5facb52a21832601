# pixelmatch/core/errors.py
"""
Typed errors + utilities for the comparison core.

Exports
-------
- PixelmatchError, NotFoundError, ImageReadError, AnalysisParseError,
  ProviderUnavailableError, PersistenceError, UploadRejectedError
- PROVIDER_ERRORS
- classify_provider_error(exc)
- provider_error_guard()
- persistence_error_guard()

Propagation policy
------------------
- PROVIDER_ERRORS are absorbed by the comparison orchestrator and turned into
  the fallback path; callers never see them from `run_comparison`.
- NotFoundError and PersistenceError are fatal and propagate.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

# =========================
# Exception types
# =========================


class PixelmatchError(RuntimeError):
    """Base class for all comparison-core failures."""


class NotFoundError(PixelmatchError):
    """A referenced record (project, comparison, discrepancy) does not exist."""


class ImageReadError(PixelmatchError):
    """An image file is missing or unreadable."""


class AnalysisParseError(PixelmatchError):
    """Provider output did not contain a locatable, valid JSON array."""


class ProviderUnavailableError(PixelmatchError):
    """Provider could not be constructed (SDK/API key) or its transport failed."""


class PersistenceError(PixelmatchError):
    """Storage write/read failure not otherwise recovered."""


class UploadRejectedError(PixelmatchError):
    """Uploaded file has a disallowed type or exceeds the size limit."""


# Selector tuple for grouped exception handling
PROVIDER_ERRORS = (
    ImageReadError,
    AnalysisParseError,
    ProviderUnavailableError,
)

# =========================
# Classification helpers
# =========================


def classify_provider_error(exc: Exception) -> PixelmatchError:
    """
    Map arbitrary exceptions raised inside a provider call to the typed taxonomy.

    Heuristics:
      - Any PixelmatchError subclass -> passed through
      - OSError (missing file, permissions) -> ImageReadError
      - json / ValueError decoding failures -> AnalysisParseError
      - openai.* / anthropic.* SDK errors -> ProviderUnavailableError
      - Fallback -> ProviderUnavailableError
    """
    if isinstance(exc, PixelmatchError):
        return exc

    # TimeoutError/ConnectionError are OSErrors too but belong to the transport
    if isinstance(exc, OSError) and not isinstance(exc, (TimeoutError, ConnectionError)):
        return ImageReadError(str(exc))

    msg = f"{type(exc).__name__}: {exc}"

    if isinstance(exc, ValueError):
        return AnalysisParseError(msg)

    # SDK transport/auth/rate-limit errors and anything unknown
    return ProviderUnavailableError(msg)


@contextmanager
def provider_error_guard() -> Iterator[None]:
    """Context manager to normalize unexpected exceptions from provider internals."""
    try:
        yield
    except PROVIDER_ERRORS:
        raise
    except Exception as exc:  # noqa: BLE001
        raise classify_provider_error(exc) from exc


@contextmanager
def persistence_error_guard(action: str) -> Iterator[None]:
    """Wrap storage backend errors (SQLAlchemy, sqlite) into PersistenceError."""
    try:
        yield
    except PixelmatchError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise PersistenceError(f"{action} failed: {type(exc).__name__}: {exc}") from exc


__all__ = [
    "PixelmatchError",
    "NotFoundError",
    "ImageReadError",
    "AnalysisParseError",
    "ProviderUnavailableError",
    "PersistenceError",
    "UploadRejectedError",
    "PROVIDER_ERRORS",
    "classify_provider_error",
    "provider_error_guard",
    "persistence_error_guard",
]
