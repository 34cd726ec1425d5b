"""YAML/JSON parser for work plan documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .models import (
    Deliverable,
    Dependency,
    Milestone,
    Task,
    WorkPackage,
    WorkPlan,
    WorkPlanMetadata,
)
from .schemas import DependencySchema, WorkPlanSchema


def _to_dependencies(schemas: list[DependencySchema]) -> list[Dependency]:
    return [
        Dependency(predecessor_id=dep.predecessor_id, type=dep.type, lag_days=dep.lag)
        for dep in schemas
    ]


class WorkPlanParser:
    """Parser for work plan files.

    JSON documents are valid YAML, so both go through yaml.safe_load. The
    root may be a mapping (with 'activities' / 'work_packages') or a bare
    list of work packages.
    """

    def parse_file(self, file_path: Path | str) -> WorkPlan:
        """Parse a YAML or JSON file into a WorkPlan."""
        path = Path(file_path)
        if not path.exists():
            raise ParseError(f"File not found: {file_path}")

        try:
            with path.open(encoding="utf-8") as f:
                data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ParseError(f"Failed to parse {path.name}: {e}") from e

        return self.parse_data(data)

    def parse_data(self, data: Any) -> WorkPlan:
        """Parse already-loaded data into a WorkPlan."""
        if isinstance(data, list):
            data = {"activities": data}
        if not isinstance(data, dict):
            raise ParseError("Work plan must be a mapping or a list of work packages")

        try:
            schema = WorkPlanSchema.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid work plan structure: {e}") from e

        metadata = WorkPlanMetadata(
            version=schema.metadata.version,
            title=schema.metadata.title,
            last_updated=schema.metadata.last_updated,
        )

        work_packages: list[WorkPackage] = []
        for wp_data in schema.work_packages:
            tasks = [
                Task(
                    id=task_data.id,
                    title=task_data.title,
                    start_date=task_data.start_date,
                    end_date=task_data.end_date,
                    dependencies=_to_dependencies(task_data.dependencies),
                    description=task_data.description,
                    meta=dict(task_data.model_extra or {}),
                )
                for task_data in wp_data.tasks
            ]
            milestones = [
                Milestone(
                    id=ms_data.id,
                    title=ms_data.title,
                    date=ms_data.date,
                    dependencies=_to_dependencies(ms_data.dependencies),
                    description=ms_data.description,
                    meta=dict(ms_data.model_extra or {}),
                )
                for ms_data in wp_data.milestones
            ]
            deliverables = [
                Deliverable(
                    id=dl_data.id,
                    title=dl_data.title,
                    date=dl_data.date,
                    meta=dict(dl_data.model_extra or {}),
                )
                for dl_data in wp_data.deliverables
            ]
            work_packages.append(
                WorkPackage(
                    id=wp_data.id,
                    title=wp_data.title,
                    tasks=tasks,
                    milestones=milestones,
                    deliverables=deliverables,
                    meta=dict(wp_data.model_extra or {}),
                )
            )

        return WorkPlan(metadata=metadata, work_packages=work_packages)


def _dump_dependencies(dependencies: list[Dependency]) -> list[dict[str, Any]]:
    result: list[dict[str, Any]] = []
    for dep in dependencies:
        entry: dict[str, Any] = {"predecessorId": dep.predecessor_id, "type": dep.type.value}
        if dep.lag_days:
            entry["lag"] = dep.lag_days
        result.append(entry)
    return result


def dump_work_plan(plan: WorkPlan) -> dict[str, Any]:
    """Convert a WorkPlan back into the host's document shape (camelCase keys)."""
    activities: list[dict[str, Any]] = []
    for wp in plan.work_packages:
        tasks: list[dict[str, Any]] = []
        for task in wp.tasks:
            tasks.append(
                {
                    "id": task.id,
                    "title": task.title,
                    "description": task.description,
                    "startDate": task.start_date,
                    "endDate": task.end_date,
                    "dependencies": _dump_dependencies(task.dependencies),
                    **task.meta,
                }
            )
        milestones: list[dict[str, Any]] = []
        for ms in wp.milestones:
            ms_data: dict[str, Any] = {
                "id": ms.id,
                "title": ms.title,
                "description": ms.description,
                "date": ms.date,
                **ms.meta,
            }
            if ms.dependencies:
                ms_data["dependencies"] = _dump_dependencies(ms.dependencies)
            milestones.append(ms_data)
        deliverables = [
            {"id": dl.id, "title": dl.title, "date": dl.date, **dl.meta} for dl in wp.deliverables
        ]
        activities.append(
            {
                "id": wp.id,
                "title": wp.title,
                "tasks": tasks,
                "milestones": milestones,
                "deliverables": deliverables,
                **wp.meta,
            }
        )

    metadata: dict[str, Any] = {"version": plan.metadata.version}
    if plan.metadata.title:
        metadata["title"] = plan.metadata.title
    if plan.metadata.last_updated:
        metadata["last_updated"] = plan.metadata.last_updated

    return {"metadata": metadata, "activities": activities}


def write_work_plan(path: Path, plan: WorkPlan) -> None:
    """Write a work plan as JSON for .json paths, YAML otherwise."""
    data = dump_work_plan(plan)
    with path.open("w", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        else:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
