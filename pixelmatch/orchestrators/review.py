# pixelmatch/orchestrators/review.py
"""
Review Workflow

Project/collaborator operations around comparisons, each writing the audit
entry the review UI shows in a project's activity feed. This is the layer an
HTTP adapter would call; it validates input and raises NotFoundError for
missing parents, which such an adapter maps to 404.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pixelmatch.config import Settings, load_settings
from pixelmatch.core.errors import NotFoundError
from pixelmatch.core.log import get_logger
from pixelmatch.core.media.uploads import save_uploaded_file
from pixelmatch.schemas.labels import ActivityType, DiscrepancyStatus, DiscrepancyType, Priority
from pixelmatch.schemas.models import (
    Activity,
    ActivityCreate,
    Comment,
    CommentCreate,
    ComparisonDetail,
    ComparisonResult,
    Coordinates,
    Discrepancy,
    DiscrepancyCreate,
    DiscrepancyDetail,
    Project,
    ProjectCreate,
)
from pixelmatch.storage.base import StorageGateway

from .comparison import ComparisonOrchestrator

log = get_logger(__name__)

# Fields a reviewer may change on an existing discrepancy
EDITABLE_DISCREPANCY_FIELDS = frozenset({"title", "description", "type", "priority", "status", "coordinates"})


class ReviewWorkflow:
    def __init__(
        self,
        storage: StorageGateway,
        orchestrator: ComparisonOrchestrator | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        self.storage = storage
        self.settings = settings or load_settings()
        self.orchestrator = orchestrator or ComparisonOrchestrator(storage, settings=self.settings)

    # ---------- projects ----------
    def create_project(self, name: str, *, user_id: int | None = None) -> Project:
        project = self.storage.create_project(ProjectCreate(name=name))
        self._log(project.id, ActivityType.project_created, f'Project "{project.name}" was created', user_id)
        return project

    def _require_project(self, project_id: int) -> Project:
        project = self.storage.get_project(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    # ---------- comparisons ----------
    def compare_uploads(
        self,
        project_id: int,
        design: tuple[bytes, str],
        website: tuple[bytes, str],
    ) -> ComparisonResult:
        """
        Save both uploads (bytes, original filename) and run a comparison.
        UploadRejectedError propagates before any comparison is created.
        """
        self._require_project(project_id)
        uploads_dir = Path(self.settings.uploads_dir)
        design_path = save_uploaded_file(design[0], design[1], uploads_dir)
        website_path = save_uploaded_file(website[0], website[1], uploads_dir)
        return self.orchestrator.run_comparison(str(design_path), str(website_path), project_id)

    def rerun_comparison(self, comparison_id: int) -> ComparisonResult:
        comparison = self.storage.get_comparison(comparison_id)
        if comparison is None:
            raise NotFoundError(f"Comparison {comparison_id} not found")
        return self.orchestrator.run_comparison(
            comparison.design_image_path,
            comparison.website_image_path,
            comparison.project_id,
            existing_comparison_id=comparison.id,
        )

    def get_comparison_detail(self, comparison_id: int) -> ComparisonDetail:
        comparison = self.storage.get_comparison(comparison_id)
        if comparison is None:
            raise NotFoundError(f"Comparison {comparison_id} not found")
        details = [
            DiscrepancyDetail(**d.model_dump(), comments=self.storage.get_comments(d.id))
            for d in self.storage.get_discrepancies(comparison_id)
        ]
        return ComparisonDetail(**comparison.model_dump(), discrepancies=details)

    # ---------- discrepancies ----------
    def add_discrepancy(self, comparison_id: int, payload: Mapping[str, Any], *, user_id: int | None = None) -> Discrepancy:
        comparison = self.storage.get_comparison(comparison_id)
        if comparison is None:
            raise NotFoundError(f"Comparison {comparison_id} not found")
        try:
            data = DiscrepancyCreate(**{**payload, "comparison_id": comparison_id})
        except ValidationError as e:
            raise ValueError(f"Invalid discrepancy data: {e}") from e
        discrepancy = self.storage.create_discrepancy(data)
        self._log(
            comparison.project_id,
            ActivityType.discrepancy_added,
            f'New discrepancy "{discrepancy.title}" was added',
            user_id,
        )
        return discrepancy

    def update_discrepancy(
        self, discrepancy_id: int, changes: Mapping[str, Any], *, user_id: int | None = None
    ) -> Discrepancy:
        current = self.storage.get_discrepancy(discrepancy_id)
        if current is None:
            raise NotFoundError(f"Discrepancy {discrepancy_id} not found")

        unknown = set(changes) - EDITABLE_DISCREPANCY_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {sorted(unknown)}")
        clean = _validate_discrepancy_changes(changes)

        updated = self.storage.update_discrepancy(discrepancy_id, clean)
        if updated is None:
            raise NotFoundError(f"Discrepancy {discrepancy_id} not found")

        comparison = self.storage.get_comparison(updated.comparison_id)
        if comparison is not None:
            self._log(
                comparison.project_id,
                ActivityType.discrepancy_updated,
                f'Discrepancy "{updated.title}" was updated',
                user_id,
            )
        return updated

    # ---------- comments ----------
    def add_comment(self, discrepancy_id: int, user_id: int, content: str) -> Comment:
        discrepancy = self.storage.get_discrepancy(discrepancy_id)
        if discrepancy is None:
            raise NotFoundError(f"Discrepancy {discrepancy_id} not found")
        try:
            data = CommentCreate(discrepancy_id=discrepancy_id, user_id=user_id, content=content)
        except ValidationError as e:
            raise ValueError(f"Invalid comment data: {e}") from e
        comment = self.storage.create_comment(data)

        comparison = self.storage.get_comparison(discrepancy.comparison_id)
        if comparison is not None:
            self._log(comparison.project_id, ActivityType.comment_added, "Comment was added to a discrepancy", user_id)
        return comment

    # ---------- activities ----------
    def list_activities(self, project_id: int) -> list[Activity]:
        """Newest first; ties keep insertion order reversed (higher id first)."""
        return sorted(self.storage.get_activities(project_id), key=lambda a: (a.created_at, a.id), reverse=True)

    def _log(self, project_id: int, type_: ActivityType, description: str, user_id: int | None) -> Activity:
        log.debug("activity %s on project %s: %s", type_.value, project_id, description)
        return self.storage.create_activity(
            ActivityCreate(project_id=project_id, type=type_, description=description, user_id=user_id)
        )


def _validate_discrepancy_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Closed-set checks for reviewer edits; raises ValueError on bad values."""
    out: dict[str, Any] = dict(changes)
    try:
        if "status" in out:
            out["status"] = DiscrepancyStatus(out["status"])
        if "priority" in out:
            out["priority"] = Priority(out["priority"])
        if "type" in out:
            out["type"] = DiscrepancyType(out["type"])
    except ValueError as e:
        raise ValueError(f"Invalid discrepancy update: {e}") from e
    if "coordinates" in out:
        try:
            out["coordinates"] = Coordinates.model_validate(out["coordinates"])
        except ValidationError as e:
            raise ValueError(f"Invalid coordinates: {e}") from e
    if "title" in out and not str(out["title"]).strip():
        raise ValueError("Discrepancy title cannot be empty")
    return out
