"""Data models for workplan."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class DependencyType(str, Enum):
    """Precedence relation between a predecessor and its dependent."""

    FS = "FS"  # Finish-to-Start
    SS = "SS"  # Start-to-Start
    FF = "FF"  # Finish-to-Finish
    SF = "SF"  # Start-to-Finish

    @classmethod
    def parse(cls, value: str | DependencyType) -> DependencyType:
        """Parse a type code case-insensitively ("fs", " SS ")."""
        if isinstance(value, DependencyType):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(
                f"Invalid dependency type '{value}'. Valid types are: {valid}"
            ) from None


@dataclass(frozen=True)
class Dependency:
    """A dependency on another task or milestone.

    lag_days shifts the bound of the relation (negative values are leads).
    """

    predecessor_id: str
    type: DependencyType = DependencyType.FS
    lag_days: int = 0

    def __str__(self) -> str:
        if self.lag_days == 0:
            return f"{self.predecessor_id} ({self.type.value})"
        return f"{self.predecessor_id} ({self.type.value} {self.lag_days:+d}d)"


def parse_iso_date(value: str | date | None) -> date | None:
    """Parse an ISO date or datetime string; None when it does not parse."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def _default_dependencies() -> list[Dependency]:
    return []


def _default_dict() -> dict[str, Any]:
    return {}


@dataclass(frozen=True)
class Task:
    """A task inside a work package.

    Dates are kept as the host's ISO strings so untouched tasks round-trip
    byte-for-byte; use `start`/`end` for parsed values.
    """

    id: str
    title: str = ""
    start_date: str | None = None
    end_date: str | None = None
    dependencies: list[Dependency] = field(default_factory=_default_dependencies)
    description: str = ""
    meta: dict[str, Any] = field(default_factory=_default_dict)

    @property
    def start(self) -> date | None:
        return parse_iso_date(self.start_date)

    @property
    def end(self) -> date | None:
        return parse_iso_date(self.end_date)

    @property
    def has_valid_dates(self) -> bool:
        """True when both dates parse and end is not before start."""
        start, end = self.start, self.end
        return start is not None and end is not None and end >= start

    @property
    def duration_days(self) -> int | None:
        """Whole days between start and end, or None without valid dates."""
        if not self.has_valid_dates:
            return None
        return (self.end - self.start).days  # type: ignore[operator]


@dataclass(frozen=True)
class Milestone:
    """A zero-duration point event inside a work package."""

    id: str
    title: str = ""
    date: str | None = None
    dependencies: list[Dependency] = field(default_factory=_default_dependencies)
    description: str = ""
    meta: dict[str, Any] = field(default_factory=_default_dict)

    @property
    def when(self) -> date | None:
        return parse_iso_date(self.date)


@dataclass(frozen=True)
class Deliverable:
    """A deliverable; display only, never scheduled."""

    id: str
    title: str = ""
    date: str | None = None
    meta: dict[str, Any] = field(default_factory=_default_dict)


def _default_tasks() -> list[Task]:
    return []


def _default_milestones() -> list[Milestone]:
    return []


def _default_deliverables() -> list[Deliverable]:
    return []


@dataclass(frozen=True)
class WorkPackage:
    """A work package with its ordered tasks, milestones and deliverables."""

    id: str
    title: str = ""
    tasks: list[Task] = field(default_factory=_default_tasks)
    milestones: list[Milestone] = field(default_factory=_default_milestones)
    deliverables: list[Deliverable] = field(default_factory=_default_deliverables)
    meta: dict[str, Any] = field(default_factory=_default_dict)


@dataclass
class WorkPlanMetadata:
    """Metadata for a work plan document."""

    version: str = "1.0"
    title: str | None = None
    last_updated: str | None = None


@dataclass
class WorkPlan:
    """A complete work plan: metadata plus ordered work packages."""

    metadata: WorkPlanMetadata
    work_packages: list[WorkPackage]

    def get_all_ids(self) -> set[str]:
        """Get all task and milestone ids in the plan."""
        return {item.id for item in iter_schedulable(self.work_packages)}

    def get_task_by_id(self, task_id: str) -> Task | None:
        """Get a task by its id (last one wins on duplicates)."""
        found: Task | None = None
        for task in iter_tasks(self.work_packages):
            if task.id == task_id:
                found = task
        return found


def iter_tasks(work_packages: Sequence[WorkPackage]) -> Iterator[Task]:
    """Iterate over every task in document order."""
    for wp in work_packages:
        yield from wp.tasks


def iter_schedulable(work_packages: Sequence[WorkPackage]) -> Iterator[Task | Milestone]:
    """Iterate over tasks then milestones of each work package, in document order."""
    for wp in work_packages:
        yield from wp.tasks
        yield from wp.milestones
