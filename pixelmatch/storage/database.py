# pixelmatch/storage/database.py
"""
SQLAlchemy-backed Persistence Gateway.

One short-lived Session per operation (commit on success, rollback on error);
rows are converted to Pydantic records before the session closes, so nothing
lazy-loads after return. Tables are created on construction.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from pixelmatch.core.errors import NotFoundError, persistence_error_guard
from pixelmatch.core.log import get_logger
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
from .tables import ActivityRow, Base, CommentRow, ComparisonRow, DiscrepancyRow, ProjectRow, UserRow

M = TypeVar("M", bound=BaseModel)

log = get_logger(__name__)


def _column_values(model: BaseModel, *, exclude: set[str] | None = None) -> dict[str, Any]:
    """Pydantic record -> plain column values (enums as their value, nested models as JSON dicts)."""
    out: dict[str, Any] = {}
    for key, value in model.model_dump(exclude=exclude or set()).items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, dict):
            value = {k: (v.value if isinstance(v, Enum) else v) for k, v in value.items()}
        out[key] = value
    return out


class DatabaseStorage:
    def __init__(self, database_url: str = "sqlite:///pixelmatch.db", *, engine: Engine | None = None, echo: bool = False) -> None:
        self.engine = engine or create_engine(database_url, echo=echo, future=True)
        self._session = sessionmaker(self.engine, expire_on_commit=False)
        with persistence_error_guard("create tables"):
            Base.metadata.create_all(self.engine)
        log.debug("database storage ready at %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def _tx(self, action: str) -> Iterator[Session]:
        with persistence_error_guard(action):
            with self._session() as session:
                try:
                    yield session
                    session.commit()
                except Exception:
                    session.rollback()
                    raise

    # ---------- generic helpers ----------
    def _get(self, row_type: type[Base], model: type[M], row_id: int) -> M | None:
        with self._tx(f"get {row_type.__tablename__}") as s:
            row = s.get(row_type, row_id)
            return model.model_validate(row) if row is not None else None

    def _list(self, row_type: type[Any], model: type[M], field: str | None = None, value: int | None = None) -> list[M]:
        with self._tx(f"list {row_type.__tablename__}") as s:
            stmt = select(row_type).order_by(row_type.id)
            if field is not None and value is not None:
                stmt = stmt.where(getattr(row_type, field) == value)
            return [model.model_validate(r) for r in s.scalars(stmt)]

    def _insert(self, row_type: type[Any], model: type[M], values: dict[str, Any]) -> M:
        with self._tx(f"insert {row_type.__tablename__}") as s:
            row = row_type(**values)
            s.add(row)
            s.flush()
            return model.model_validate(row)

    def _update(self, row_type: type[Any], model: type[M], row_id: int, changes: Mapping[str, Any]) -> M | None:
        with self._tx(f"update {row_type.__tablename__}") as s:
            row = s.get(row_type, row_id)
            if row is None:
                return None
            merged = model.model_validate({**model.model_validate(row).model_dump(), **clean_changes(changes)})
            for key, value in _column_values(merged, exclude={"id"}).items():
                setattr(row, key, value)
            s.flush()
            return model.model_validate(row)

    # ---------- users ----------
    def get_user(self, user_id: int) -> User | None:
        return self._get(UserRow, User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with self._tx("get user by username") as s:
            row = s.scalars(select(UserRow).where(UserRow.username == username)).first()
            return User.model_validate(row) if row is not None else None

    def create_user(self, data: UserCreate) -> User:
        return self._insert(UserRow, User, _column_values(data))

    # ---------- projects ----------
    def get_projects(self) -> list[Project]:
        return self._list(ProjectRow, Project)

    def get_project(self, project_id: int) -> Project | None:
        return self._get(ProjectRow, Project, project_id)

    def create_project(self, data: ProjectCreate) -> Project:
        return self._insert(ProjectRow, Project, _column_values(data))

    def update_project(self, project_id: int, changes: Mapping[str, Any]) -> Project | None:
        return self._update(ProjectRow, Project, project_id, {**changes, "updated_at": utcnow()})

    # ---------- comparisons ----------
    def get_comparisons(self, project_id: int | None = None) -> list[Comparison]:
        return self._list(ComparisonRow, Comparison, "project_id", project_id)

    def get_comparison(self, comparison_id: int) -> Comparison | None:
        return self._get(ComparisonRow, Comparison, comparison_id)

    def create_comparison(self, data: ComparisonCreate) -> Comparison:
        return self._insert(ComparisonRow, Comparison, _column_values(data))

    def update_comparison(self, comparison_id: int, changes: Mapping[str, Any]) -> Comparison | None:
        return self._update(ComparisonRow, Comparison, comparison_id, changes)

    # ---------- discrepancies ----------
    def get_discrepancies(self, comparison_id: int | None = None) -> list[Discrepancy]:
        return self._list(DiscrepancyRow, Discrepancy, "comparison_id", comparison_id)

    def get_discrepancy(self, discrepancy_id: int) -> Discrepancy | None:
        return self._get(DiscrepancyRow, Discrepancy, discrepancy_id)

    def create_discrepancy(self, data: DiscrepancyCreate) -> Discrepancy:
        with self._tx("insert discrepancies") as s:
            if s.get(ComparisonRow, data.comparison_id) is None:
                raise NotFoundError(f"Comparison {data.comparison_id} not found")
            row = DiscrepancyRow(**_column_values(data), status="open")
            s.add(row)
            s.flush()
            return Discrepancy.model_validate(row)

    def update_discrepancy(self, discrepancy_id: int, changes: Mapping[str, Any]) -> Discrepancy | None:
        return self._update(DiscrepancyRow, Discrepancy, discrepancy_id, changes)

    # ---------- comments ----------
    def get_comments(self, discrepancy_id: int | None = None) -> list[Comment]:
        return self._list(CommentRow, Comment, "discrepancy_id", discrepancy_id)

    def create_comment(self, data: CommentCreate) -> Comment:
        with self._tx("insert comments") as s:
            if s.get(DiscrepancyRow, data.discrepancy_id) is None:
                raise NotFoundError(f"Discrepancy {data.discrepancy_id} not found")
            row = CommentRow(**_column_values(data))
            s.add(row)
            s.flush()
            return Comment.model_validate(row)

    # ---------- activities ----------
    def get_activities(self, project_id: int | None = None) -> list[Activity]:
        return self._list(ActivityRow, Activity, "project_id", project_id)

    def create_activity(self, data: ActivityCreate) -> Activity:
        return self._insert(ActivityRow, Activity, _column_values(data))
