"""Pytest configuration and fixtures for workplan tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date

import pytest

from workplan.logger import reset_logger
from workplan.models import Dependency, DependencyType, Milestone, Task, WorkPackage

BASE_DATE = date(2024, 1, 1)


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    """Reset the workplan logger around each test for isolation."""
    reset_logger()
    yield
    reset_logger()


def dep(predecessor_id: str, dep_type: str = "FS", lag: int = 0) -> Dependency:
    """Create a Dependency from a predecessor id and a type code."""
    return Dependency(predecessor_id=predecessor_id, type=DependencyType(dep_type), lag_days=lag)


def task(
    task_id: str,
    start: str | None,
    end: str | None,
    *dependencies: Dependency,
    title: str = "",
    description: str = "",
) -> Task:
    """Create a Task with ISO date strings.

    This is a helper function for tests to build tasks without spelling out
    every keyword.

    Example:
        task("T2", "2024-01-03", "2024-01-06", dep("T1"))
    """
    return Task(
        id=task_id,
        title=title or task_id,
        start_date=start,
        end_date=end,
        dependencies=list(dependencies),
        description=description,
    )


def timed(task_id: str, duration: int, *dependencies: Dependency) -> Task:
    """Create a task of the given duration starting on BASE_DATE (for CPM tests)."""
    end = date.fromordinal(BASE_DATE.toordinal() + duration)
    return task(task_id, BASE_DATE.isoformat(), end.isoformat(), *dependencies)


def milestone(milestone_id: str, when: str | None, *dependencies: Dependency) -> Milestone:
    """Create a Milestone on an ISO date."""
    return Milestone(
        id=milestone_id,
        title=milestone_id,
        date=when,
        dependencies=list(dependencies),
    )


def wp(wp_id: str, *items: Task | Milestone, title: str = "") -> WorkPackage:
    """Create a WorkPackage, sorting items into tasks and milestones."""
    return WorkPackage(
        id=wp_id,
        title=title or wp_id,
        tasks=[item for item in items if isinstance(item, Task)],
        milestones=[item for item in items if isinstance(item, Milestone)],
    )


def dates_of(work_packages: list[WorkPackage]) -> dict[str, tuple[str | None, str | None]]:
    """Map item id to its (start, end) strings; milestones report (date, date)."""
    result: dict[str, tuple[str | None, str | None]] = {}
    for package in work_packages:
        for t in package.tasks:
            result[t.id] = (t.start_date, t.end_date)
        for m in package.milestones:
            result[m.id] = (m.date, m.date)
    return result
