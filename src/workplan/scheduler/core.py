"""Core dataclasses for the scheduling engine."""

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from workplan.exceptions import CycleError, DanglingDependencyWarning, Diagnostic

if TYPE_CHECKING:
    from workplan.models import WorkPackage

    from .config import SchedulingConfig


def _default_diagnostics() -> list[Diagnostic]:
    return []


def _default_str_list() -> list[str]:
    return []


def visible_diagnostics(
    diagnostics: list[Diagnostic], config: "SchedulingConfig | None"
) -> list[Diagnostic]:
    """Drop dangling-dependency diagnostics when the config hides them."""
    if config is None or config.report_dangling_dependencies:
        return list(diagnostics)
    return [d for d in diagnostics if not isinstance(d, DanglingDependencyWarning)]


@dataclass(frozen=True)
class ScheduleEntry:
    """CPM numbers for one task, as whole-day offsets from project start."""

    task_id: str
    duration: int
    earliest_start: int
    earliest_finish: int
    latest_start: int
    latest_finish: int
    slack: int
    is_critical: bool

    def to_dict(self) -> dict[str, Any]:
        """Host-facing shape (camelCase keys)."""
        return {
            "earliestStart": self.earliest_start,
            "earliestFinish": self.earliest_finish,
            "latestStart": self.latest_start,
            "latestFinish": self.latest_finish,
            "slack": self.slack,
            "isCritical": self.is_critical,
        }


@dataclass
class CriticalPathResult:
    """Result of the critical path analysis."""

    entries: dict[str, ScheduleEntry]  # Keyed by task id, in topological order
    project_finish: int  # Maximum earliest finish over all tasks
    diagnostics: list[Diagnostic] = field(default_factory=_default_diagnostics)

    @property
    def critical_task_ids(self) -> list[str]:
        """Every zero-slack task, in topological order."""
        return [task_id for task_id, entry in self.entries.items() if entry.is_critical]

    @property
    def warnings(self) -> list[str]:
        return [str(d) for d in self.diagnostics]

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {task_id: entry.to_dict() for task_id, entry in self.entries.items()}


@dataclass(frozen=True)
class DateChange:
    """A calendar move applied by propagation."""

    item_id: str
    old_start: date
    old_end: date
    new_start: date
    new_end: date

    @property
    def shift_days(self) -> int:
        return (self.new_start - self.old_start).days


@dataclass
class PropagationResult:
    """New work packages plus what propagation changed."""

    work_packages: "list[WorkPackage]"
    changes: dict[str, DateChange]  # Keyed by item id, in the order applied
    diagnostics: list[Diagnostic] = field(default_factory=_default_diagnostics)

    @property
    def changed_ids(self) -> list[str]:
        return list(self.changes)

    @property
    def warnings(self) -> list[str]:
        return [str(d) for d in self.diagnostics]


@dataclass
class RelaxResult:
    """Work packages after relabelling overlapping FS dependencies as SS."""

    work_packages: "list[WorkPackage]"
    relabelled: list[tuple[str, str]]  # (task_id, predecessor_id)


@dataclass
class ValidationReport:
    """Findings of a validation run; nothing here is raised."""

    duplicate_ids: list[str] = field(default_factory=_default_str_list)
    diagnostics: list[Diagnostic] = field(default_factory=_default_diagnostics)
    cycle: CycleError | None = None

    @property
    def is_valid(self) -> bool:
        """False when scheduling would refuse the input (cycle) or it is ambiguous (duplicates)."""
        return self.cycle is None and not self.duplicate_ids
