"""Calendar propagation of edited dates to dependent tasks."""

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date, timedelta

from workplan.graph import DependencyGraph, build_dependency_graph, topological_order
from workplan.logger import get_logger
from workplan.models import Milestone, Task, WorkPackage, parse_iso_date
from workplan.precedence import PRECEDENCE_RULES

from .config import SchedulingConfig
from .core import DateChange, PropagationResult, visible_diagnostics

logger = get_logger()


class CalendarPropagator:
    """Pushes dependents of edited items later until every relation holds.

    Bounds per dependency type (gap = calendar.finish_to_start_gap_days):
    - FS: start >= predecessor end + gap + lag
    - SS: start >= predecessor start + lag
    - FF: end >= predecessor end + lag
    - SF: end >= predecessor start + lag

    Dates only move forward and start/end move together, so durations are
    preserved. Items not downstream of an edit keep their dates.
    """

    def __init__(self, config: SchedulingConfig | None = None):
        self.config = config or SchedulingConfig()

    def propagate(
        self,
        work_packages: Sequence[WorkPackage],
        edited_ids: Iterable[str] | None = None,
    ) -> PropagationResult:
        """Recompute dates downstream of the edited items.

        Args:
            work_packages: Current snapshot, already containing the user's edit
            edited_ids: Ids of the edited tasks/milestones. None re-checks every
                item (a full consistency pass).

        Returns:
            PropagationResult with new work packages; the input is not modified

        Raises:
            CycleError: If the dependencies form a cycle (nothing is changed)
        """
        graph = build_dependency_graph(
            work_packages, include_milestones=self.config.include_milestones
        )
        order = topological_order(graph)

        if edited_ids is None:
            targets = set(graph.nodes)
        else:
            seeds = list(edited_ids)
            for seed in seeds:
                if seed not in graph:
                    logger.checks(f"  Edited item {seed} is not schedulable, nothing to propagate")
            targets = graph.downstream_of(seeds)

        changes = self._push_forward(graph, order, targets)

        return PropagationResult(
            work_packages=_apply_changes(work_packages, graph, changes),
            changes=changes,
            diagnostics=visible_diagnostics(graph.diagnostics, self.config),
        )

    def _push_forward(
        self, graph: DependencyGraph, order: list[str], targets: set[str]
    ) -> dict[str, DateChange]:
        gap = self.config.calendar.finish_to_start_gap_days
        dates = {nid: (node.start, node.end) for nid, node in graph.nodes.items()}
        changes: dict[str, DateChange] = {}

        for node_id in order:
            if node_id not in targets:
                continue
            start, end = dates[node_id]
            shift = 0
            binding: str | None = None

            for dep in graph.nodes[node_id].incoming_predecessors:
                pred_start, pred_end = dates[dep.predecessor_id]
                needed = PRECEDENCE_RULES[dep.type].calendar_shift(
                    pred_start, pred_end, start, end, dep.lag_days, gap
                )
                if needed > shift:
                    shift = needed
                    binding = f"{dep.type.value} on {dep.predecessor_id}"

            if shift == 0:
                continue

            new_start = start + timedelta(days=shift)
            new_end = end + timedelta(days=shift)
            dates[node_id] = (new_start, new_end)
            changes[node_id] = DateChange(
                item_id=node_id,
                old_start=start,
                old_end=end,
                new_start=new_start,
                new_end=new_end,
            )
            logger.changes(
                f"Moved {node_id}: {start}..{end} -> {new_start}..{new_end} "
                f"(+{shift}d, {binding})"
            )

        return changes


def _apply_changes(
    work_packages: Sequence[WorkPackage],
    graph: DependencyGraph,
    changes: dict[str, DateChange],
) -> list[WorkPackage]:
    """Copy the work packages with new date strings on changed items only."""

    def is_changed(item: Task | Milestone) -> bool:
        # With duplicate ids only the occurrence that made it into the graph moves
        return item.id in changes and graph.nodes[item.id].item is item

    result: list[WorkPackage] = []
    for wp in work_packages:
        if not any(is_changed(item) for item in [*wp.tasks, *wp.milestones]):
            result.append(wp)
            continue

        tasks = [
            replace(
                task,
                start_date=changes[task.id].new_start.isoformat(),
                end_date=changes[task.id].new_end.isoformat(),
            )
            if is_changed(task)
            else task
            for task in wp.tasks
        ]
        milestones = [
            replace(ms, date=changes[ms.id].new_start.isoformat()) if is_changed(ms) else ms
            for ms in wp.milestones
        ]
        result.append(replace(wp, tasks=tasks, milestones=milestones))

    return result


def apply_date_edit(
    work_packages: Sequence[WorkPackage],
    item_id: str,
    *,
    start: date | str | None = None,
    end: date | str | None = None,
) -> list[WorkPackage]:
    """Return a copy of the work packages with one item's dates replaced.

    For tasks, a new start alone moves the whole task (duration kept) and a
    new end alone resizes it (start kept). For milestones, start (or end)
    becomes the milestone date.

    Raises:
        KeyError: If no task or milestone has this id
        ValueError: If a given date does not parse, or the edit puts a
            task's end before its start
    """
    new_start = _as_iso(start)
    new_end = _as_iso(end)
    found = False
    result: list[WorkPackage] = []

    for wp in work_packages:
        tasks = list(wp.tasks)
        milestones = list(wp.milestones)
        for idx, task in enumerate(tasks):
            if task.id == item_id:
                found = True
                start_date, end_date = _edited_span(task, new_start, new_end)
                tasks[idx] = replace(task, start_date=start_date, end_date=end_date)
        for idx, ms in enumerate(milestones):
            if ms.id == item_id:
                found = True
                when = new_start if new_start is not None else new_end
                if when is not None:
                    milestones[idx] = replace(ms, date=when)
        result.append(replace(wp, tasks=tasks, milestones=milestones))

    if not found:
        raise KeyError(item_id)
    return result


def _edited_span(
    task: Task, new_start: str | None, new_end: str | None
) -> tuple[str | None, str | None]:
    old_start, old_end = task.start, task.end
    if new_start is not None and new_end is None and old_start is not None and old_end is not None:
        shift = date.fromisoformat(new_start) - old_start
        new_end = (old_end + shift).isoformat()

    start_date = new_start if new_start is not None else task.start_date
    end_date = new_end if new_end is not None else task.end_date
    parsed_start, parsed_end = parse_iso_date(start_date), parse_iso_date(end_date)
    if parsed_start is not None and parsed_end is not None and parsed_end < parsed_start:
        raise ValueError(f"{task.id} would end ({parsed_end}) before it starts ({parsed_start})")
    return start_date, end_date


def _as_iso(value: date | str | None) -> str | None:
    if value is None:
        return None
    parsed = parse_iso_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r} (use YYYY-MM-DD)")
    return parsed.isoformat()
