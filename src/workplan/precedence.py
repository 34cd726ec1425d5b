"""Precedence rules shared by the CPM passes, calendar propagation and export.

Each dependency type is described by two facts: which side of the
predecessor it reads (start or finish) and which side of the dependent it
bounds. Every pass derives its arithmetic from this one table.
"""

from dataclasses import dataclass
from datetime import date

from .models import DependencyType


@dataclass(frozen=True)
class PrecedenceRule:
    """How one dependency type constrains its dependent."""

    reads_predecessor_finish: bool  # FS, FF read the predecessor's finish; SS, SF its start
    bounds_dependent_finish: bool  # FF, SF bound the dependent's finish; FS, SS its start
    interchange_code: int  # SS=0, FS=1, SF=2, FF=3

    @property
    def is_finish_to_start(self) -> bool:
        return self.reads_predecessor_finish and not self.bounds_dependent_finish

    def earliest_start(
        self, pred_earliest_start: int, pred_earliest_finish: int, duration: int, lag: int
    ) -> int:
        """Lower bound on the dependent's earliest start (forward pass)."""
        anchor = pred_earliest_finish if self.reads_predecessor_finish else pred_earliest_start
        bound = anchor + lag
        return bound - duration if self.bounds_dependent_finish else bound

    def latest_finish(
        self, succ_latest_start: int, succ_latest_finish: int, pred_duration: int, lag: int
    ) -> int:
        """Upper bound on the predecessor's latest finish (backward pass)."""
        limit = (succ_latest_finish if self.bounds_dependent_finish else succ_latest_start) - lag
        return limit if self.reads_predecessor_finish else limit + pred_duration

    def calendar_shift(  # noqa: PLR0913 - one value per side of the relation
        self,
        pred_start: date,
        pred_end: date,
        start: date,
        end: date,
        lag: int,
        finish_to_start_gap: int,
    ) -> int:
        """Days the dependent must move forward to satisfy this relation (0 if it holds)."""
        anchor = pred_end if self.reads_predecessor_finish else pred_start
        required = lag + (finish_to_start_gap if self.is_finish_to_start else 0)
        current = end if self.bounds_dependent_finish else start
        return max(0, (anchor - current).days + required)


PRECEDENCE_RULES: dict[DependencyType, PrecedenceRule] = {
    DependencyType.FS: PrecedenceRule(
        reads_predecessor_finish=True, bounds_dependent_finish=False, interchange_code=1
    ),
    DependencyType.SS: PrecedenceRule(
        reads_predecessor_finish=False, bounds_dependent_finish=False, interchange_code=0
    ),
    DependencyType.FF: PrecedenceRule(
        reads_predecessor_finish=True, bounds_dependent_finish=True, interchange_code=3
    ),
    DependencyType.SF: PrecedenceRule(
        reads_predecessor_finish=False, bounds_dependent_finish=True, interchange_code=2
    ),
}
