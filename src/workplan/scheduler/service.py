"""High-level scheduling service."""

from collections.abc import Iterable, Sequence
from datetime import date
from typing import TYPE_CHECKING

from workplan.exceptions import CycleError
from workplan.graph import (
    DependencyGraph,
    build_dependency_graph,
    find_duplicate_ids,
    topological_order,
)
from workplan.interchange import InterchangeConfig, InterchangeDocument, build_interchange
from workplan.logger import get_logger

from .config import SchedulingConfig
from .core import (
    CriticalPathResult,
    PropagationResult,
    RelaxResult,
    ValidationReport,
    visible_diagnostics,
)
from .critical_path import CriticalPathAnalyzer
from .propagation import CalendarPropagator, apply_date_edit
from .sanitize import relax_overlapping_dependencies

if TYPE_CHECKING:
    from workplan.models import WorkPackage

logger = get_logger()


class SchedulingService:
    """High-level service over one snapshot of work packages.

    This service coordinates:
    - build_dependency_graph (graph building and diagnostics)
    - CriticalPathAnalyzer (forward/backward passes)
    - CalendarPropagator (pushing edited dates downstream)
    - build_interchange (export to the project interchange format)

    The snapshot is never modified; operations that change dates return new
    work packages.
    """

    def __init__(
        self,
        work_packages: "Sequence[WorkPackage]",
        config: SchedulingConfig | None = None,
        interchange_config: InterchangeConfig | None = None,
    ):
        """Initialize scheduling service.

        Args:
            work_packages: Work packages to schedule
            config: Optional scheduling configuration
            interchange_config: Optional export configuration
        """
        self.work_packages = list(work_packages)
        self.config = config or SchedulingConfig()
        self.interchange_config = interchange_config

    def build_graph(self) -> DependencyGraph:
        return build_dependency_graph(
            self.work_packages, include_milestones=self.config.include_milestones
        )

    def validate(self) -> ValidationReport:
        """Collect duplicates, dropped items/links and cycles without raising."""
        graph = self.build_graph()
        report = ValidationReport(
            duplicate_ids=find_duplicate_ids(self.work_packages),
            diagnostics=visible_diagnostics(graph.diagnostics, self.config),
        )
        for dup in report.duplicate_ids:
            logger.checks(f"  Duplicate id {dup}: the last occurrence is scheduled")
        try:
            topological_order(graph)
        except CycleError as e:
            logger.checks(f"  {e}")
            report.cycle = e
        return report

    def analyze_critical_path(self) -> CriticalPathResult:
        """Run CPM over the current snapshot.

        Raises:
            CycleError: If the dependencies form a cycle
        """
        return CriticalPathAnalyzer(self.build_graph(), self.config).analyze()

    def propagate(self, edited_ids: Iterable[str] | None = None) -> PropagationResult:
        """Push dependents of the edited items forward.

        Raises:
            CycleError: If the dependencies form a cycle
        """
        return CalendarPropagator(self.config).propagate(self.work_packages, edited_ids)

    def reschedule(
        self,
        item_id: str,
        *,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> PropagationResult:
        """Apply a date edit to one item, then propagate it.

        Raises:
            KeyError: If the item does not exist
            CycleError: If the dependencies form a cycle (the edit is not applied)
        """
        edited = apply_date_edit(self.work_packages, item_id, start=start, end=end)
        return CalendarPropagator(self.config).propagate(edited, [item_id])

    def relax_overlaps(self) -> RelaxResult:
        return relax_overlapping_dependencies(self.work_packages)

    def export_interchange(self) -> InterchangeDocument:
        return build_interchange(self.work_packages, self.interchange_config)
