"""Pydantic schemas for work plan documents (YAML or JSON)."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .models import DependencyType


class _HostModel(BaseModel):
    """Accepts the host's camelCase keys as well as snake_case ones."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class DependencySchema(_HostModel):
    """Schema for a single dependency entry."""

    predecessor_id: str = Field(
        validation_alias=AliasChoices("predecessorId", "predecessor_id", "taskId")
    )
    type: DependencyType = DependencyType.FS
    lag: int = Field(default=0, validation_alias=AliasChoices("lag", "lag_days", "lagDays"))

    @field_validator("predecessor_id", mode="before")
    @classmethod
    def coerce_id_to_string(cls, v: Any) -> str:
        """Ids may be written as bare numbers in YAML."""
        return str(v)

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: Any) -> DependencyType:
        """Accept lower-case codes; missing type means FS."""
        if v is None:
            return DependencyType.FS
        return DependencyType.parse(v)


def _coerce_date_string(v: Any) -> str | None:
    """Keep dates as strings; YAML turns bare dates into date objects."""
    if v is None:
        return None
    if isinstance(v, date):
        return v.isoformat()
    return str(v)


def _coerce_dependencies(v: Any) -> list[Any]:
    """Accept a single dependency, a bare id, or a list of either."""
    if v is None:
        return []
    items: list[Any] = v if isinstance(v, list) else [v]  # type: ignore[assignment]
    return [{"predecessorId": item} if isinstance(item, (str, int)) else item for item in items]


class TaskSchema(_HostModel):
    """Schema for a task."""

    id: str
    title: str = ""
    description: str = ""
    start_date: str | None = Field(
        default=None, validation_alias=AliasChoices("startDate", "start_date")
    )
    end_date: str | None = Field(
        default=None, validation_alias=AliasChoices("endDate", "end_date")
    )
    dependencies: list[DependencySchema] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def coerce_dates(cls, v: Any) -> str | None:
        return _coerce_date_string(v)

    @field_validator("dependencies", mode="before")
    @classmethod
    def ensure_dependency_list(cls, v: Any) -> list[Any]:
        return _coerce_dependencies(v)


class MilestoneSchema(_HostModel):
    """Schema for a milestone."""

    id: str
    title: str = ""
    description: str = ""
    date: str | None = None
    dependencies: list[DependencySchema] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> str | None:
        return _coerce_date_string(v)

    @field_validator("dependencies", mode="before")
    @classmethod
    def ensure_dependency_list(cls, v: Any) -> list[Any]:
        return _coerce_dependencies(v)


class DeliverableSchema(_HostModel):
    """Schema for a deliverable (display only)."""

    id: str
    title: str = ""
    date: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> str | None:
        return _coerce_date_string(v)


class WorkPackageSchema(_HostModel):
    """Schema for a work package."""

    id: str
    title: str = ""
    tasks: list[TaskSchema] = Field(default_factory=list)
    milestones: list[MilestoneSchema] = Field(default_factory=list)
    deliverables: list[DeliverableSchema] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("tasks", "milestones", "deliverables", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[Any]:
        if v is None:
            return []
        return v  # type: ignore[no-any-return]


class MetadataSchema(BaseModel):
    """Schema for work plan metadata."""

    version: str = "1.0"
    title: str | None = None
    last_updated: str | None = None

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version_to_string(cls, v: Any) -> str:
        return str(v)

    @field_validator("last_updated", mode="before")
    @classmethod
    def coerce_date_to_string(cls, v: Any) -> str | None:
        return _coerce_date_string(v)


class WorkPlanSchema(BaseModel):
    """Schema for the whole document.

    The host stores its work packages under 'activities'; 'work_packages'
    and 'workPackages' are accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True)

    metadata: MetadataSchema = Field(default_factory=MetadataSchema)
    work_packages: list[WorkPackageSchema] = Field(
        default_factory=list,
        validation_alias=AliasChoices("activities", "work_packages", "workPackages"),
    )
