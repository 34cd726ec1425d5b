"""Critical path analysis over task durations."""

from workplan.graph import DependencyGraph, NodeKind, topological_order
from workplan.logger import debug_enabled, get_logger
from workplan.precedence import PRECEDENCE_RULES

from .config import SchedulingConfig
from .core import CriticalPathResult, ScheduleEntry, visible_diagnostics

logger = get_logger()


class CriticalPathAnalyzer:
    """Computes earliest/latest offsets, slack and critical tasks.

    Works on durations only: every task is placed relative to a zero
    reference, regardless of its calendar dates. Milestones and edges that
    touch them are ignored. No finish-to-start gap is applied here; the gap
    is a calendar convention (see CalendarPropagator).
    """

    def __init__(self, graph: DependencyGraph, config: SchedulingConfig | None = None):
        """Initialize the analyzer.

        Args:
            graph: A freshly built dependency graph
            config: Optional configuration (controls which diagnostics are reported)
        """
        self.graph = graph
        self.config = config or SchedulingConfig()

    def analyze(self) -> CriticalPathResult:
        """Run the forward and backward passes.

        Raises:
            CycleError: If the graph is not acyclic (no partial result is produced)
        """
        order = topological_order(self.graph)
        task_ids = [nid for nid in order if self.graph.nodes[nid].kind == NodeKind.TASK]
        durations = {task_id: self.graph.nodes[task_id].duration for task_id in task_ids}

        earliest = self._forward_pass(task_ids, durations)
        project_finish = max((finish for _, finish in earliest.values()), default=0)
        latest = self._backward_pass(task_ids, durations, project_finish)

        entries: dict[str, ScheduleEntry] = {}
        for task_id in task_ids:
            es, ef = earliest[task_id]
            ls, lf = latest[task_id]
            slack = ls - es
            entries[task_id] = ScheduleEntry(
                task_id=task_id,
                duration=durations[task_id],
                earliest_start=es,
                earliest_finish=ef,
                latest_start=ls,
                latest_finish=lf,
                slack=slack,
                is_critical=slack == 0,
            )

        logger.debug(
            f"CPM: {len(entries)} tasks, project finish {project_finish}, "
            f"critical: {', '.join(e.task_id for e in entries.values() if e.is_critical)}"
        )
        return CriticalPathResult(
            entries=entries,
            project_finish=project_finish,
            diagnostics=visible_diagnostics(self.graph.diagnostics, self.config),
        )

    def _forward_pass(
        self, task_ids: list[str], durations: dict[str, int]
    ) -> dict[str, tuple[int, int]]:
        """Earliest (start, finish) per task, in topological order.

        Ties keep the first predecessor in dependency-list order.
        """
        earliest: dict[str, tuple[int, int]] = {}

        for task_id in task_ids:
            duration = durations[task_id]
            earliest_start = 0
            driver: str | None = None

            for dep in self.graph.nodes[task_id].incoming_predecessors:
                if dep.predecessor_id not in earliest:
                    continue  # Milestone predecessor
                pred_start, pred_finish = earliest[dep.predecessor_id]
                candidate = PRECEDENCE_RULES[dep.type].earliest_start(
                    pred_start, pred_finish, duration, dep.lag_days
                )
                if candidate > earliest_start:
                    earliest_start = candidate
                    driver = dep.predecessor_id

            earliest[task_id] = (earliest_start, earliest_start + duration)
            if debug_enabled():
                logger.debug(
                    f"  forward {task_id}: ES={earliest_start} EF={earliest_start + duration}"
                    + (f" (driven by {driver})" if driver else "")
                )

        return earliest

    def _backward_pass(
        self, task_ids: list[str], durations: dict[str, int], project_finish: int
    ) -> dict[str, tuple[int, int]]:
        """Latest (start, finish) per task, in reverse topological order.

        Tasks without dependents finish at the project finish; every latest
        finish is also capped there. Ties keep the first dependent edge seen.
        """
        latest: dict[str, tuple[int, int]] = {}

        for task_id in reversed(task_ids):
            duration = durations[task_id]
            latest_finish = project_finish
            driver: str | None = None

            for dependent_id in self.graph.nodes[task_id].outgoing_dependents:
                if dependent_id not in latest:
                    continue  # Milestone dependent
                succ_start, succ_finish = latest[dependent_id]
                for dep in self.graph.nodes[dependent_id].incoming_predecessors:
                    if dep.predecessor_id != task_id:
                        continue
                    candidate = PRECEDENCE_RULES[dep.type].latest_finish(
                        succ_start, succ_finish, duration, dep.lag_days
                    )
                    if candidate < latest_finish:
                        latest_finish = candidate
                        driver = dependent_id

            latest[task_id] = (latest_finish - duration, latest_finish)
            if debug_enabled():
                logger.debug(
                    f"  backward {task_id}: LS={latest_finish - duration} LF={latest_finish}"
                    + (f" (bound by {driver})" if driver else "")
                )

        return latest
