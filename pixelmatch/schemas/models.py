# pixelmatch/schemas/models.py

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from pixelmatch.schemas.labels import (
    ActivityType,
    ComparisonStatus,
    DiscrepancyStatus,
    DiscrepancyType,
    Priority,
    Role,
    Shape,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Record(BaseModel):
    """Base for persisted rows; accepts ORM objects via from_attributes."""

    model_config = ConfigDict(from_attributes=True)


# =========================
# Discrepancy payloads
# =========================


class Coordinates(BaseModel):
    """
    Region of interest in a 0-100 relative coordinate space (percent of the image).
    Defaults are the placeholders used when a provider omits a field.
    """

    x: float = Field(0.0, description="Left edge, percent of image width.")
    y: float = Field(0.0, description="Top edge, percent of image height.")
    width: float = Field(10.0, description="Region width, percent of image width.")
    height: float = Field(10.0, description="Region height, percent of image height.")
    shape: Shape = Field(Shape.rectangle, description="Marker drawn by the review UI.")


class VisualDiscrepancy(BaseModel):
    """One finding as returned by a vision provider (or the fallback library), before persistence."""

    title: str
    description: str = ""
    type: DiscrepancyType = DiscrepancyType.other
    priority: Priority = Priority.medium
    status: DiscrepancyStatus = DiscrepancyStatus.open
    coordinates: Coordinates = Field(default_factory=Coordinates)


# =========================
# Users & projects
# =========================


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1)
    role: Role = Role.user


class User(_Record):
    id: int
    username: str
    role: Role = Role.user


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Display name of the project.")


class Project(_Record):
    id: int
    name: str
    status: str = "active"
    approved: bool = False
    collaborators: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# =========================
# Comparisons
# =========================


class ComparisonCreate(BaseModel):
    project_id: int
    design_image_path: str
    website_image_path: str
    name: str = ""
    description: str = ""
    status: ComparisonStatus = ComparisonStatus.pending


class Comparison(_Record):
    """
    One design-vs-website analysis run.

    `used_fallback` marks a discrepancy set that came from the static fallback
    library rather than an AI provider; the review UI must flag it.
    """

    id: int
    project_id: int
    name: str = ""
    description: str = ""
    design_image_path: str
    website_image_path: str
    status: ComparisonStatus = ComparisonStatus.pending
    used_fallback: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    last_compared_at: datetime | None = None


# =========================
# Discrepancies & comments
# =========================


class DiscrepancyCreate(BaseModel):
    comparison_id: int
    title: str = Field(..., min_length=1)
    description: str = ""
    type: DiscrepancyType = DiscrepancyType.other
    priority: Priority = Priority.medium
    coordinates: Coordinates = Field(default_factory=Coordinates)


class Discrepancy(_Record):
    id: int
    comparison_id: int
    title: str
    description: str = ""
    type: DiscrepancyType
    priority: Priority = Priority.medium
    status: DiscrepancyStatus = DiscrepancyStatus.open
    coordinates: Coordinates
    created_at: datetime = Field(default_factory=utcnow)


class CommentCreate(BaseModel):
    discrepancy_id: int
    user_id: int
    content: str = Field(..., min_length=1)


class Comment(_Record):
    id: int
    discrepancy_id: int
    user_id: int
    content: str
    created_at: datetime = Field(default_factory=utcnow)


# =========================
# Audit trail
# =========================


class ActivityCreate(BaseModel):
    project_id: int
    type: ActivityType
    description: str
    user_id: int | None = None


class Activity(_Record):
    id: int
    project_id: int
    user_id: int | None = None
    type: ActivityType
    description: str
    created_at: datetime = Field(default_factory=utcnow)


# =========================
# Composite results
# =========================


class ComparisonResult(BaseModel):
    """Return value of a comparison run: the updated comparison and the batch persisted by that run."""

    comparison: Comparison
    discrepancies: list[Discrepancy] = Field(default_factory=list)


class DiscrepancyDetail(Discrepancy):
    comments: list[Comment] = Field(default_factory=list)


class ComparisonDetail(Comparison):
    discrepancies: list[DiscrepancyDetail] = Field(default_factory=list)
