"""Export work plans to a neutral interchange format for desktop scheduling tools.

Records carry synthetic integer ids and predecessor links with numeric type
codes (SS=0, FS=1, SF=2, FF=3). The mapper only reads dates; it never
schedules.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any
from xml.etree.ElementTree import Element, SubElement, indent, tostring

from pydantic import BaseModel, field_validator

from .logger import get_logger
from .models import Milestone, Task, WorkPackage
from .precedence import PRECEDENCE_RULES

logger = get_logger()

MS_PROJECT_NAMESPACE = "http://schemas.microsoft.com/project"
# MS Project stores link lag in tenths of a minute; LagFormat 7 displays days
_LAG_UNITS_PER_DAY = 4800
_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d:[0-5]\d$")


class InterchangeConfig(BaseModel):
    """Interchange export settings."""

    start_time: str = "08:00:00"  # Time of day appended to start dates
    finish_time: str = "17:00:00"  # Time of day appended to finish dates

    @field_validator("start_time", "finish_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate HH:MM:SS format."""
        if not _TIME_PATTERN.match(v):
            raise ValueError(f"Time must be in HH:MM:SS format, got: {v}")
        return v


class RecordKind(str, Enum):
    """What an interchange record stands for."""

    SUMMARY = "summary"  # A work package
    TASK = "task"
    MILESTONE = "milestone"


@dataclass(frozen=True)
class PredecessorLink:
    """A precedence link between two records."""

    predecessor_id: int
    type: int  # SS=0, FS=1, SF=2, FF=3
    lag_days: int = 0

    def to_dict(self) -> dict[str, int]:
        data = {"predecessorId": self.predecessor_id, "type": self.type}
        if self.lag_days:
            data["lagDays"] = self.lag_days
        return data


def _default_links() -> list[PredecessorLink]:
    return []


def _default_children() -> list[InterchangeRecord]:
    return []


@dataclass
class InterchangeRecord:
    """One task, milestone or work package summary in the export."""

    uid: int
    name: str
    source_id: str
    kind: RecordKind
    outline_level: int
    start: str | None = None  # ISO datetime, None for an empty summary
    finish: str | None = None
    predecessors: list[PredecessorLink] = field(default_factory=_default_links)
    children: list[InterchangeRecord] = field(default_factory=_default_children)
    notes: str = ""

    @property
    def is_summary(self) -> bool:
        return self.kind == RecordKind.SUMMARY

    @property
    def is_milestone(self) -> bool:
        return self.kind == RecordKind.MILESTONE

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.uid,
            "name": self.name,
            "sourceId": self.source_id,
            "outlineLevel": self.outline_level,
            "start": self.start,
            "finish": self.finish,
        }
        if self.is_summary:
            data["summary"] = True
            data["children"] = [child.to_dict() for child in self.children]
        if self.is_milestone:
            data["milestone"] = True
        if self.predecessors:
            data["predecessors"] = [link.to_dict() for link in self.predecessors]
        if self.notes:
            data["notes"] = self.notes
        return data


def _default_records() -> list[InterchangeRecord]:
    return []


@dataclass
class InterchangeDocument:
    """Top-level summary records in document order."""

    records: list[InterchangeRecord] = field(default_factory=_default_records)

    def iter_records(self) -> Iterator[InterchangeRecord]:
        """Every record, each summary followed by its children."""
        for record in self.records:
            yield record
            yield from record.children

    def to_dict(self) -> dict[str, Any]:
        return {"records": [record.to_dict() for record in self.records]}


def _assign_uids(
    work_packages: Sequence[WorkPackage],
) -> tuple[dict[str, int], dict[str, int]]:
    """Sequential ids for every record that will be emitted.

    Order: work package, then its dated tasks, then its dated milestones.
    Summary ids are kept apart: links resolve to tasks and milestones only.
    """
    summary_uids: dict[str, int] = {}
    item_uids: dict[str, int] = {}
    counter = 1
    for wp in work_packages:
        summary_uids[wp.id] = counter
        counter += 1
        for task in wp.tasks:
            if task.has_valid_dates:
                item_uids[task.id] = counter
                counter += 1
        for ms in wp.milestones:
            if ms.when is not None:
                item_uids[ms.id] = counter
                counter += 1
    return summary_uids, item_uids


def _links(item: Task | Milestone, uids: dict[str, int]) -> list[PredecessorLink]:
    links: list[PredecessorLink] = []
    for dep in item.dependencies:
        predecessor_uid = uids.get(dep.predecessor_id)
        if predecessor_uid is None:
            logger.checks(f"  Export: dropping link {item.id} <- {dep.predecessor_id} (no record)")
            continue
        links.append(
            PredecessorLink(
                predecessor_id=predecessor_uid,
                type=PRECEDENCE_RULES[dep.type].interchange_code,
                lag_days=dep.lag_days,
            )
        )
    return links


def _stamp(day: date, time_of_day: str) -> str:
    return f"{day.isoformat()}T{time_of_day}"


def build_interchange(
    work_packages: Sequence[WorkPackage], config: InterchangeConfig | None = None
) -> InterchangeDocument:
    """Map work packages to interchange records.

    Tasks without valid dates and undated milestones are left out, together
    with any link pointing at them.
    """
    config = config or InterchangeConfig()
    summary_uids, uids = _assign_uids(work_packages)
    document = InterchangeDocument()

    for wp in work_packages:
        children: list[InterchangeRecord] = []
        for task in wp.tasks:
            if not task.has_valid_dates:
                continue
            children.append(
                InterchangeRecord(
                    uid=uids[task.id],
                    name=f"{task.id}: {task.title}",
                    source_id=task.id,
                    kind=RecordKind.TASK,
                    outline_level=2,
                    start=_stamp(task.start, config.start_time),  # type: ignore[arg-type]
                    finish=_stamp(task.end, config.finish_time),  # type: ignore[arg-type]
                    predecessors=_links(task, uids),
                    notes=task.description,
                )
            )
        for ms in wp.milestones:
            when = ms.when
            if when is None:
                continue
            stamp = _stamp(when, config.start_time)
            children.append(
                InterchangeRecord(
                    uid=uids[ms.id],
                    name=f"{ms.id}: {ms.title or ms.description}",
                    source_id=ms.id,
                    kind=RecordKind.MILESTONE,
                    outline_level=2,
                    start=stamp,
                    finish=stamp,
                    predecessors=_links(ms, uids),
                    notes=ms.description,
                )
            )

        # ISO stamps with a fixed time format sort chronologically as strings
        starts = [child.start for child in children if child.start]
        finishes = [child.finish for child in children if child.finish]
        document.records.append(
            InterchangeRecord(
                uid=summary_uids[wp.id],
                name=f"{wp.id}: {wp.title}",
                source_id=wp.id,
                kind=RecordKind.SUMMARY,
                outline_level=1,
                start=min(starts) if starts else None,
                finish=max(finishes) if finishes else None,
                children=children,
            )
        )

    logger.debug(f"Interchange: {sum(1 for _ in document.iter_records())} records")
    return document


def _se(parent: Element, tag: str, text: object | None = None) -> Element:
    """SubElement shorthand."""
    el = SubElement(parent, tag)
    if text is not None:
        el.text = str(text)
    return el


def to_ms_project_xml(document: InterchangeDocument, *, title: str | None = None) -> str:
    """Serialize the document as MS Project 2003 XML."""
    root = Element("Project")
    root.set("xmlns", MS_PROJECT_NAMESPACE)
    if title:
        _se(root, "Title", title)

    tasks_el = _se(root, "Tasks")
    for record in document.iter_records():
        t = _se(tasks_el, "Task")
        _se(t, "UID", record.uid)
        _se(t, "ID", record.uid)
        _se(t, "Name", record.name)
        _se(t, "OutlineLevel", record.outline_level)
        if record.start:
            _se(t, "Start", record.start)
        if record.finish:
            _se(t, "Finish", record.finish)
        _se(t, "Summary", "1" if record.is_summary else "0")
        _se(t, "Milestone", "1" if record.is_milestone else "0")
        if record.notes:
            _se(t, "Notes", record.notes)
        for link in record.predecessors:
            pl = _se(t, "PredecessorLink")
            _se(pl, "PredecessorUID", link.predecessor_id)
            _se(pl, "Type", link.type)
            _se(pl, "CrossProject", "0")
            _se(pl, "LinkLag", link.lag_days * _LAG_UNITS_PER_DAY)
            _se(pl, "LagFormat", "7")  # days

    indent(root, space="  ")
    body = tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n{body}\n'
