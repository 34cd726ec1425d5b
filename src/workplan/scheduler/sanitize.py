"""Relax finish-to-start links that the current dates already overlap."""

from collections.abc import Sequence
from dataclasses import replace

from workplan.logger import get_logger
from workplan.models import DependencyType, Task, WorkPackage, iter_tasks

from .core import RelaxResult

logger = get_logger()


def relax_overlapping_dependencies(work_packages: Sequence[WorkPackage]) -> RelaxResult:
    """Relabel FS dependencies as SS where the task already starts before its predecessor ends.

    Imported plans often carry FS links between tasks that were planned to
    overlap. Relabelling keeps the link (so the pair still moves together)
    without pushing the dependent past the predecessor's end on the next
    propagation. Only task-to-task links with parseable dates are touched.
    """
    tasks_by_id: dict[str, Task] = {task.id: task for task in iter_tasks(work_packages)}
    relabelled: list[tuple[str, str]] = []
    result: list[WorkPackage] = []

    for wp in work_packages:
        new_tasks: list[Task] = []
        for task in wp.tasks:
            start = task.start
            new_deps = list(task.dependencies)
            for idx, dep in enumerate(task.dependencies):
                if dep.type != DependencyType.FS or start is None:
                    continue
                predecessor = tasks_by_id.get(dep.predecessor_id)
                if predecessor is None or not predecessor.has_valid_dates:
                    continue
                if start <= predecessor.end:  # type: ignore[operator]
                    new_deps[idx] = replace(dep, type=DependencyType.SS)
                    relabelled.append((task.id, dep.predecessor_id))
                    logger.changes(
                        f"Relabelled {task.id} <- {dep.predecessor_id} as SS "
                        f"(starts {start}, predecessor ends {predecessor.end})"
                    )
            if new_deps != task.dependencies:
                task = replace(task, dependencies=new_deps)
            new_tasks.append(task)
        result.append(replace(wp, tasks=new_tasks))

    return RelaxResult(work_packages=result, relabelled=relabelled)
