# pixelmatch/core/health.py
"""
Provider health (circuit breaker).

A single-flag breaker per provider name: one recorded failure trips it.
By default a tripped breaker stays open for the lifetime of the object
(normally the process); `reset_after_s` closes it again after a cooldown.

Orchestrators built without an explicit instance share `default_health()`,
one breaker per process (per cooldown setting), so hosts that construct a
workflow per request still see earlier failures. Tests and multi-tenant hosts
can inject their own instance to scope it however they need.
Reads and writes go through one lock; a race can cost one extra provider
call, never a wrong result.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class ProviderHealth:
    def __init__(
        self,
        *,
        reset_after_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._reset_after_s = reset_after_s
        self._clock = clock
        self._tripped_at: dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def reset_after_s(self) -> float | None:
        return self._reset_after_s

    def record_failure(self, provider: str) -> None:
        with self._lock:
            self._tripped_at[provider] = self._clock()

    def is_available(self, provider: str) -> bool:
        with self._lock:
            tripped = self._tripped_at.get(provider)
            if tripped is None:
                return True
            if self._reset_after_s is not None and self._clock() - tripped >= self._reset_after_s:
                del self._tripped_at[provider]
                return True
            return False

    def reset(self, provider: str | None = None) -> None:
        """Close one breaker, or all of them when `provider` is None."""
        with self._lock:
            if provider is None:
                self._tripped_at.clear()
            else:
                self._tripped_at.pop(provider, None)

    def snapshot(self) -> dict[str, bool]:
        """Provider name -> tripped, for the providers that have failed at least once."""
        with self._lock:
            names = list(self._tripped_at)
        return {name: not self.is_available(name) for name in names}

    def __repr__(self) -> str:
        return f"ProviderHealth(tripped={sorted(k for k, v in self.snapshot().items() if v)}, reset_after_s={self._reset_after_s})"


_shared: dict[float | None, ProviderHealth] = {}
_shared_lock = threading.Lock()


def default_health(reset_after_s: float | None = None) -> ProviderHealth:
    """Process-wide breaker used when no ProviderHealth is injected."""
    with _shared_lock:
        health = _shared.get(reset_after_s)
        if health is None:
            health = _shared[reset_after_s] = ProviderHealth(reset_after_s=reset_after_s)
        return health


def reset_default_health() -> None:
    """Forget the shared breakers (all tripped state with them)."""
    with _shared_lock:
        _shared.clear()
