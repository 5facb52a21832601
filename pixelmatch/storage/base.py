# pixelmatch/storage/base.py
"""
Persistence Gateway contract

Conventional CRUD over users, projects, comparisons, discrepancies, comments
and activities. Implementations: MemStorage (dict-backed) and DatabaseStorage
(SQLAlchemy). Both return the Pydantic records from pixelmatch.schemas.models.

Invariants & Guardrails
-----------------------
- get_*/update_* return None for a missing id; they never raise NotFoundError.
- create_discrepancy requires the comparison to exist (NotFoundError otherwise)
  and always stores status "open".
- create_comment requires the discrepancy to exist.
- Activities are append-only; there is no update/delete.
- Backend failures surface as PersistenceError.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from pixelmatch.schemas.models import (
    Activity,
    ActivityCreate,
    Comment,
    CommentCreate,
    Comparison,
    ComparisonCreate,
    Discrepancy,
    DiscrepancyCreate,
    Project,
    ProjectCreate,
    User,
    UserCreate,
)

# Fields callers may never overwrite through update_*
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


class StorageGateway(Protocol):
    # Users
    def get_user(self, user_id: int) -> User | None: ...
    def get_user_by_username(self, username: str) -> User | None: ...
    def create_user(self, data: UserCreate) -> User: ...

    # Projects
    def get_projects(self) -> list[Project]: ...
    def get_project(self, project_id: int) -> Project | None: ...
    def create_project(self, data: ProjectCreate) -> Project: ...
    def update_project(self, project_id: int, changes: Mapping[str, Any]) -> Project | None: ...

    # Comparisons
    def get_comparisons(self, project_id: int | None = None) -> list[Comparison]: ...
    def get_comparison(self, comparison_id: int) -> Comparison | None: ...
    def create_comparison(self, data: ComparisonCreate) -> Comparison: ...
    def update_comparison(self, comparison_id: int, changes: Mapping[str, Any]) -> Comparison | None: ...

    # Discrepancies
    def get_discrepancies(self, comparison_id: int | None = None) -> list[Discrepancy]: ...
    def get_discrepancy(self, discrepancy_id: int) -> Discrepancy | None: ...
    def create_discrepancy(self, data: DiscrepancyCreate) -> Discrepancy: ...
    def update_discrepancy(self, discrepancy_id: int, changes: Mapping[str, Any]) -> Discrepancy | None: ...

    # Comments
    def get_comments(self, discrepancy_id: int | None = None) -> list[Comment]: ...
    def create_comment(self, data: CommentCreate) -> Comment: ...

    # Activities
    def get_activities(self, project_id: int | None = None) -> list[Activity]: ...
    def create_activity(self, data: ActivityCreate) -> Activity: ...


def clean_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in changes.items() if k not in IMMUTABLE_FIELDS}
