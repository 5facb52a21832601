# pixelmatch/orchestrators/comparison.py
"""
Comparison Orchestrator

Purpose
-------
Single door for a design-vs-website comparison run:
  1) Resolve or create the Comparison and stamp `last_compared_at`.
  2) Pick the active provider from the preference and ProviderHealth.
  3) Analyze; on provider failure retry once with the alternate provider
     (if its breaker is closed). Failures trip the failing provider's breaker.
     An unreadable local image is the caller's problem, not the provider's:
     it skips the alternate and leaves both breakers alone.
  4) No items from any provider -> static fallback library, `used_fallback`.
  5) Persist discrepancies, write summary + status, record one activity.

Error policy
------------
- Provider errors (ImageReadError, AnalysisParseError, ProviderUnavailableError,
  and anything unexpected raised inside a provider) are absorbed here.
- The fallback library is loaded when the orchestrator is built; an unusable
  PIXELMATCH_FALLBACK_PATH is logged and replaced by the packaged library.
- NotFoundError (unknown existing_comparison_id) and PersistenceError propagate.
- Without an injected ProviderHealth the process-wide `default_health()` is used.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from pixelmatch.config import Settings, load_settings
from pixelmatch.core.errors import PROVIDER_ERRORS, ImageReadError, NotFoundError, provider_error_guard
from pixelmatch.core.health import ProviderHealth, default_health
from pixelmatch.core.log import get_logger
from pixelmatch.core.reporting import activity_description, templated_summary
from pixelmatch.schemas.labels import ActivityType, ComparisonStatus
from pixelmatch.schemas.models import (
    ActivityCreate,
    Comparison,
    ComparisonCreate,
    ComparisonResult,
    Discrepancy,
    DiscrepancyCreate,
    VisualDiscrepancy,
    utcnow,
)
from pixelmatch.storage.base import StorageGateway
from pixelmatch.tools.vision import VisionProvider, make_provider
from pixelmatch.tools.vision.fallback import FallbackLibrary, load_fallback_library

log = get_logger(__name__)

ProviderFactory = Callable[[str, Settings], VisionProvider]


@dataclass
class AnalysisOutcome:
    items: list[VisualDiscrepancy]
    provider: VisionProvider | None
    used_fallback: bool
    attempted: list[str]


class ComparisonOrchestrator:
    def __init__(
        self,
        storage: StorageGateway,
        *,
        settings: Settings | None = None,
        health: ProviderHealth | None = None,
        provider_factory: ProviderFactory = make_provider,
        fallback: FallbackLibrary | None = None,
    ) -> None:
        self.storage = storage
        self.settings = settings or load_settings()
        self.health = health or default_health(self.settings.breaker_reset_s)
        self._provider_factory = provider_factory
        self._fallback = fallback if fallback is not None else self._load_fallback(self.settings.fallback_path)
        self._providers: dict[str, VisionProvider] = {}

    # ---------- public API ----------
    def run_comparison(
        self,
        design_image_path: str,
        website_image_path: str,
        project_id: int,
        existing_comparison_id: int | None = None,
    ) -> ComparisonResult:
        comparison = self._resolve_comparison(design_image_path, website_image_path, project_id, existing_comparison_id)
        comparison = self._update(comparison.id, {"last_compared_at": utcnow()})

        outcome = self.analyze(design_image_path, website_image_path)

        persisted = self._persist(comparison.id, outcome.items)
        summary = self._summarize(outcome)

        comparison = self._update(
            comparison.id,
            {
                "description": summary,
                "used_fallback": comparison.used_fallback or outcome.used_fallback,
                "status": ComparisonStatus.completed,
            },
        )

        self.storage.create_activity(
            ActivityCreate(
                project_id=project_id,
                type=ActivityType.comparison_run,
                description=activity_description(outcome.items, used_fallback=outcome.used_fallback),
            )
        )

        log.info(
            "comparison %s completed: %d discrepancies (providers tried=%s, fallback=%s)",
            comparison.id,
            len(persisted),
            outcome.attempted or "none",
            outcome.used_fallback,
        )
        return ComparisonResult(comparison=comparison, discrepancies=persisted)

    def select_provider(self) -> str:
        """Secondary only when preferred and its breaker is closed; primary otherwise."""
        s = self.settings
        if s.provider_preference == "secondary" and self.health.is_available(s.secondary_provider):
            return s.secondary_provider
        return s.primary_provider

    def analyze(self, design_image_path: str, website_image_path: str) -> AnalysisOutcome:
        """Provider call with one alternate retry; never raises for provider problems."""
        active = self.select_provider()
        alternate = self.settings.secondary_provider if active == self.settings.primary_provider else self.settings.primary_provider
        candidates = [active] if alternate == active else [active, alternate]
        attempted: list[str] = []

        provider: VisionProvider | None = None
        items: list[VisualDiscrepancy] = []
        for name in candidates:
            if name != active and not self.health.is_available(name):
                log.info("alternate provider %s is circuit-broken; skipping retry", name)
                break
            attempted.append(name)
            try:
                provider, items = self._call_provider(name, design_image_path, website_image_path)
                break
            except ImageReadError as e:
                # Same bad file for every provider; not a health signal
                log.warning("image unreadable (%s); skipping providers", e)
                provider = None
                break
            except PROVIDER_ERRORS as e:
                log.warning("provider %s failed: %s", name, e)
                self.health.record_failure(name)
                provider = None

        if items:
            return AnalysisOutcome(items=items, provider=provider, used_fallback=False, attempted=attempted)

        library = self._fallback
        log.warning(
            "no AI discrepancies (providers tried=%s); using fallback library v%s (%d items)",
            attempted,
            library.version,
            len(library),
        )
        return AnalysisOutcome(items=library.items, provider=None, used_fallback=True, attempted=attempted)

    # ---------- internals ----------
    def _provider(self, name: str) -> VisionProvider:
        if name not in self._providers:
            self._providers[name] = self._provider_factory(name, self.settings)
        return self._providers[name]

    def _call_provider(self, name: str, design: str, website: str) -> tuple[VisionProvider, list[VisualDiscrepancy]]:
        with provider_error_guard():
            provider = self._provider(name)
            items = provider.analyze_image_differences(design, website)
        return provider, list(items)

    @staticmethod
    def _load_fallback(path: str | None) -> FallbackLibrary:
        if path is None:
            return load_fallback_library()
        try:
            return load_fallback_library(path)
        except (OSError, ValueError) as e:
            log.error("fallback library %s unusable (%s); using packaged library", path, e)
            return load_fallback_library()

    def _resolve_comparison(
        self, design: str, website: str, project_id: int, existing_comparison_id: int | None
    ) -> Comparison:
        if existing_comparison_id is not None:
            existing = self.storage.get_comparison(existing_comparison_id)
            if existing is None:
                raise NotFoundError(f"Comparison {existing_comparison_id} not found")
            return existing

        now = utcnow()
        return self.storage.create_comparison(
            ComparisonCreate(
                project_id=project_id,
                design_image_path=str(design),
                website_image_path=str(website),
                name=f"{Path(design).stem} vs {Path(website).stem}",
                description=f"Design mockup compared with website screenshot on {now:%Y-%m-%d %H:%M} UTC",
                status=ComparisonStatus.processing,
            )
        )

    def _update(self, comparison_id: int, changes: dict) -> Comparison:
        updated = self.storage.update_comparison(comparison_id, changes)
        if updated is None:
            raise NotFoundError(f"Comparison {comparison_id} not found")
        return updated

    def _persist(self, comparison_id: int, items: Sequence[VisualDiscrepancy]) -> list[Discrepancy]:
        return [
            self.storage.create_discrepancy(
                DiscrepancyCreate(
                    comparison_id=comparison_id,
                    title=item.title,
                    description=item.description,
                    type=item.type,
                    priority=item.priority,
                    coordinates=item.coordinates,
                )
            )
            for item in items
        ]

    def _summarize(self, outcome: AnalysisOutcome) -> str:
        if outcome.used_fallback or outcome.provider is None:
            return templated_summary(outcome.items, used_fallback=outcome.used_fallback)
        try:
            with provider_error_guard():
                return outcome.provider.generate_summary(outcome.items)
        except PROVIDER_ERRORS as e:
            log.warning("summary generation failed (%s); using templated summary", e)
            return templated_summary(outcome.items)
