# pixelmatch/storage/memory.py
from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from pixelmatch.core.errors import NotFoundError
from pixelmatch.schemas.labels import DiscrepancyStatus
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
    utcnow,
)

from .base import clean_changes

M = TypeVar("M", bound=BaseModel)


class _Table:
    """One id-keyed map with its own counter (ids start at 1)."""

    def __init__(self) -> None:
        self.rows: dict[int, Any] = {}
        self._next = 1

    def next_id(self) -> int:
        i = self._next
        self._next += 1
        return i


class MemStorage:
    """
    Dict-backed gateway for development and tests.

    All state lives on the instance; a single lock serializes writes so the
    store can be shared between request threads. Rows leave the store as deep
    copies, so callers never hold a reference into it.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users = _Table()
        self._projects = _Table()
        self._comparisons = _Table()
        self._discrepancies = _Table()
        self._comments = _Table()
        self._activities = _Table()

    # ---------- helpers ----------
    @staticmethod
    def _copy(row: M | None) -> M | None:
        return row.model_copy(deep=True) if row is not None else None

    def _get(self, table: _Table, row_id: int) -> Any:
        with self._lock:
            return self._copy(table.rows.get(row_id))

    def _insert(self, table: _Table, model: type[M], **values: Any) -> M:
        with self._lock:
            row = model(id=table.next_id(), **values)
            table.rows[row.id] = row  # type: ignore[attr-defined]
            return self._copy(row)

    def _update(self, table: _Table, model: type[M], row_id: int, changes: Mapping[str, Any]) -> M | None:
        with self._lock:
            current = table.rows.get(row_id)
            if current is None:
                return None
            merged = model.model_validate({**current.model_dump(), **clean_changes(changes)})
            table.rows[row_id] = merged
            return self._copy(merged)

    def _where(self, table: _Table, field: str, value: int | None) -> list[Any]:
        with self._lock:
            return [self._copy(r) for r in table.rows.values() if value is None or getattr(r, field) == value]

    # ---------- users ----------
    def get_user(self, user_id: int) -> User | None:
        return self._get(self._users, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with self._lock:
            return self._copy(next((u for u in self._users.rows.values() if u.username == username), None))

    def create_user(self, data: UserCreate) -> User:
        return self._insert(self._users, User, **data.model_dump())

    # ---------- projects ----------
    def get_projects(self) -> list[Project]:
        return self._where(self._projects, "id", None)

    def get_project(self, project_id: int) -> Project | None:
        return self._get(self._projects, project_id)

    def create_project(self, data: ProjectCreate) -> Project:
        now = utcnow()
        return self._insert(self._projects, Project, **data.model_dump(), created_at=now, updated_at=now)

    def update_project(self, project_id: int, changes: Mapping[str, Any]) -> Project | None:
        return self._update(self._projects, Project, project_id, {**changes, "updated_at": utcnow()})

    # ---------- comparisons ----------
    def get_comparisons(self, project_id: int | None = None) -> list[Comparison]:
        return self._where(self._comparisons, "project_id", project_id)

    def get_comparison(self, comparison_id: int) -> Comparison | None:
        return self._get(self._comparisons, comparison_id)

    def create_comparison(self, data: ComparisonCreate) -> Comparison:
        return self._insert(self._comparisons, Comparison, **data.model_dump(), created_at=utcnow())

    def update_comparison(self, comparison_id: int, changes: Mapping[str, Any]) -> Comparison | None:
        return self._update(self._comparisons, Comparison, comparison_id, changes)

    # ---------- discrepancies ----------
    def get_discrepancies(self, comparison_id: int | None = None) -> list[Discrepancy]:
        return self._where(self._discrepancies, "comparison_id", comparison_id)

    def get_discrepancy(self, discrepancy_id: int) -> Discrepancy | None:
        return self._get(self._discrepancies, discrepancy_id)

    def create_discrepancy(self, data: DiscrepancyCreate) -> Discrepancy:
        with self._lock:
            if data.comparison_id not in self._comparisons.rows:
                raise NotFoundError(f"Comparison {data.comparison_id} not found")
            return self._insert(
                self._discrepancies,
                Discrepancy,
                **data.model_dump(),
                status=DiscrepancyStatus.open,
                created_at=utcnow(),
            )

    def update_discrepancy(self, discrepancy_id: int, changes: Mapping[str, Any]) -> Discrepancy | None:
        return self._update(self._discrepancies, Discrepancy, discrepancy_id, changes)

    # ---------- comments ----------
    def get_comments(self, discrepancy_id: int | None = None) -> list[Comment]:
        return self._where(self._comments, "discrepancy_id", discrepancy_id)

    def create_comment(self, data: CommentCreate) -> Comment:
        with self._lock:
            if data.discrepancy_id not in self._discrepancies.rows:
                raise NotFoundError(f"Discrepancy {data.discrepancy_id} not found")
            return self._insert(self._comments, Comment, **data.model_dump(), created_at=utcnow())

    # ---------- activities ----------
    def get_activities(self, project_id: int | None = None) -> list[Activity]:
        return self._where(self._activities, "project_id", project_id)

    def create_activity(self, data: ActivityCreate) -> Activity:
        return self._insert(self._activities, Activity, **data.model_dump(), created_at=utcnow())
