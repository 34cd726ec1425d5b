"""Custom exceptions and diagnostics for workplan."""

from __future__ import annotations

from dataclasses import dataclass


class WorkplanError(Exception):
    """Base exception for all workplan errors."""

    pass


class ValidationError(WorkplanError):
    """Raised when validation fails."""

    pass


class CycleError(ValidationError):
    """Raised when the dependency graph contains a cycle.

    Attributes:
        task_id: One task on the offending cycle
        cycle: The cycle path, starting and ending with the same id
    """

    def __init__(self, task_id: str, cycle: list[str] | None = None):
        self.task_id = task_id
        self.cycle = cycle or [task_id]
        super().__init__(f"Circular dependency detected: {' -> '.join(self.cycle)}")


class ParseError(WorkplanError):
    """Raised when a work plan document cannot be parsed."""

    pass


@dataclass(frozen=True)
class DanglingDependencyWarning:
    """A dependency references an id with no dated task or milestone behind it."""

    item_id: str
    predecessor_id: str

    def __str__(self) -> str:
        return f"{self.item_id} depends on unknown item {self.predecessor_id} (ignored)"


@dataclass(frozen=True)
class InvalidDateSkipped:
    """An item lacks usable dates and is left out of scheduling."""

    item_id: str
    reason: str

    def __str__(self) -> str:
        return f"{self.item_id} skipped: {self.reason}"


Diagnostic = DanglingDependencyWarning | InvalidDateSkipped
