"""Tests for calendar propagation."""

from datetime import date, timedelta
from io import StringIO

import pytest

from tests.conftest import dates_of, dep, milestone, task, wp
from workplan.exceptions import CycleError
from workplan.logger import setup_logger
from workplan.models import DependencyType, WorkPackage, iter_schedulable
from workplan.scheduler import (
    CalendarConfig,
    CalendarPropagator,
    SchedulingConfig,
    apply_date_edit,
)


def _example_plan() -> list[WorkPackage]:
    return [
        wp(
            "WP1",
            task("T1", "2024-01-01", "2024-01-05"),
            task("T2", "2024-01-03", "2024-01-06", dep("T1")),
        )
    ]


def _span(start: str, end: str) -> int:
    return (date.fromisoformat(end) - date.fromisoformat(start)).days


class TestFinishToStartExample:
    """WP1: T1 2024-01-01..05, T2 FS on T1 with 2024-01-03..06."""

    def test_dependent_moves_after_predecessor(self) -> None:
        result = CalendarPropagator().propagate(_example_plan())

        dates = dates_of(result.work_packages)
        assert dates["T2"] == ("2024-01-06", "2024-01-09")
        assert dates["T1"] == ("2024-01-01", "2024-01-05")

    def test_edit_seed_propagates(self) -> None:
        result = CalendarPropagator().propagate(_example_plan(), ["T1"])

        assert dates_of(result.work_packages)["T2"] == ("2024-01-06", "2024-01-09")
        change = result.changes["T2"]
        assert change.old_start == date(2024, 1, 3)
        assert change.new_start == date(2024, 1, 6)
        assert change.shift_days == 3
        assert result.changed_ids == ["T2"]

    def test_input_not_modified(self) -> None:
        plan = _example_plan()

        CalendarPropagator().propagate(plan)

        assert dates_of(plan)["T2"] == ("2024-01-03", "2024-01-06")

    def test_gap_is_configurable(self) -> None:
        config = SchedulingConfig(calendar=CalendarConfig(finish_to_start_gap_days=0))

        result = CalendarPropagator(config).propagate(_example_plan())

        assert dates_of(result.work_packages)["T2"] == ("2024-01-05", "2024-01-08")

    def test_lag_adds_to_gap(self) -> None:
        plan = [
            wp(
                "WP1",
                task("T1", "2024-01-01", "2024-01-05"),
                task("T2", "2024-01-03", "2024-01-06", dep("T1", "FS", 2)),
            )
        ]

        result = CalendarPropagator().propagate(plan)

        assert dates_of(result.work_packages)["T2"] == ("2024-01-08", "2024-01-11")

    def test_satisfied_dependency_left_alone(self) -> None:
        plan = [
            wp(
                "WP1",
                task("T1", "2024-01-01", "2024-01-05"),
                task("T2", "2024-01-10", "2024-01-12", dep("T1")),
            )
        ]

        result = CalendarPropagator().propagate(plan)

        assert result.changes == {}
        assert result.work_packages == plan

    def test_never_moves_backward(self) -> None:
        """A dependent far later than needed keeps its dates."""
        plan = [
            wp(
                "WP1",
                task("T1", "2024-01-01", "2024-01-02"),
                task("T2", "2024-03-01", "2024-03-05", dep("T1")),
            )
        ]

        result = CalendarPropagator().propagate(plan, ["T1"])

        assert dates_of(result.work_packages)["T2"] == ("2024-03-01", "2024-03-05")


class TestDependencyTypes:
    """Calendar bounds for SS, FF and SF."""

    def test_start_to_start(self) -> None:
        plan = [
            wp(
                "WP1",
                task("A", "2024-01-01", "2024-01-05"),
                task("B", "2023-12-30", "2024-01-02", dep("A", "SS")),
            )
        ]

        result = CalendarPropagator().propagate(plan)

        assert dates_of(result.work_packages)["B"] == ("2024-01-01", "2024-01-04")

    def test_finish_to_finish(self) -> None:
        plan = [
            wp(
                "WP1",
                task("A", "2024-01-01", "2024-01-10"),
                task("B", "2024-01-01", "2024-01-05", dep("A", "FF")),
            )
        ]

        result = CalendarPropagator().propagate(plan)

        assert dates_of(result.work_packages)["B"] == ("2024-01-06", "2024-01-10")

    def test_start_to_finish(self) -> None:
        plan = [
            wp(
                "WP1",
                task("A", "2024-01-10", "2024-01-12"),
                task("B", "2024-01-01", "2024-01-05", dep("A", "SF")),
            )
        ]

        result = CalendarPropagator().propagate(plan)

        assert dates_of(result.work_packages)["B"] == ("2024-01-06", "2024-01-10")

    def test_largest_violation_wins(self) -> None:
        plan = [
            wp(
                "WP1",
                task("A", "2024-01-01", "2024-01-05"),
                task("B", "2024-01-01", "2024-01-20"),
                task("C", "2024-01-02", "2024-01-04", dep("A"), dep("B", "FF")),
            )
        ]

        result = CalendarPropagator().propagate(plan)

        # FS on A needs +4 days, FF on B needs +16
        assert dates_of(result.work_packages)["C"] == ("2024-01-18", "2024-01-20")


class TestPropagationProperties:
    """Constraint satisfaction, idempotence, duration preservation and isolation."""

    @pytest.fixture
    def plan(self) -> list[WorkPackage]:
        return [
            wp(
                "WP1",
                task("A", "2024-01-01", "2024-01-05"),
                task("B", "2024-01-02", "2024-01-04", dep("A")),
                task("C", "2024-01-01", "2024-01-03", dep("B", "SS", 1)),
                task("D", "2024-01-01", "2024-01-02", dep("C", "FF", 2)),
                milestone("M", "2024-01-01", dep("D")),
            ),
            wp(
                "WP2",
                task("E", "2024-01-01", "2024-01-09", dep("M", "SF"), dep("A", "FS", -1)),
                task("F", "2024-01-01", "2024-01-02"),
                task("G", "2023-12-01", "2023-12-02", dep("F")),
            ),
        ]

    def test_every_constraint_holds(self, plan: list[WorkPackage]) -> None:
        result = CalendarPropagator().propagate(plan)

        dates = {
            item_id: (date.fromisoformat(start), date.fromisoformat(end))  # type: ignore[arg-type]
            for item_id, (start, end) in dates_of(result.work_packages).items()
        }
        for item in iter_schedulable(result.work_packages):
            start, end = dates[item.id]
            for d in item.dependencies:
                pred_start, pred_end = dates[d.predecessor_id]
                if d.type == DependencyType.FS:
                    assert start >= pred_end + timedelta(days=1 + d.lag_days)
                elif d.type == DependencyType.SS:
                    assert start >= pred_start + timedelta(days=d.lag_days)
                elif d.type == DependencyType.FF:
                    assert end >= pred_end + timedelta(days=d.lag_days)
                else:
                    assert end >= pred_start + timedelta(days=d.lag_days)

    def test_idempotent(self, plan: list[WorkPackage]) -> None:
        propagator = CalendarPropagator()
        first = propagator.propagate(plan)

        second = propagator.propagate(first.work_packages)

        assert second.changes == {}
        assert dates_of(second.work_packages) == dates_of(first.work_packages)

    def test_durations_preserved(self, plan: list[WorkPackage]) -> None:
        before = dates_of(plan)

        after = dates_of(CalendarPropagator().propagate(plan).work_packages)

        for item_id, (start, end) in before.items():
            new_start, new_end = after[item_id]
            assert _span(start, end) == _span(new_start, new_end)  # type: ignore[arg-type]

    def test_isolation(self, plan: list[WorkPackage]) -> None:
        """Editing A never moves F or G, even though G violates its own link."""
        result = CalendarPropagator().propagate(plan, ["A"])

        dates = dates_of(result.work_packages)
        assert dates["F"] == ("2024-01-01", "2024-01-02")
        assert dates["G"] == ("2023-12-01", "2023-12-02")
        assert "A" not in result.changes
        assert set(result.changes) <= {"B", "C", "D", "M", "E"}

    def test_full_pass_fixes_everything(self, plan: list[WorkPackage]) -> None:
        result = CalendarPropagator().propagate(plan)

        assert dates_of(result.work_packages)["G"] == ("2024-01-03", "2024-01-04")


class TestPropagationEdgeCases:
    """Cycles, dangling links, undated tasks, milestones and duplicates."""

    def test_cycle_aborts(self) -> None:
        plan = [
            wp(
                "WP1",
                task("A", "2024-01-01", "2024-01-05", dep("B")),
                task("B", "2024-01-02", "2024-01-04", dep("A")),
            )
        ]

        with pytest.raises(CycleError):
            CalendarPropagator().propagate(plan, ["A"])
        assert dates_of(plan)["B"] == ("2024-01-02", "2024-01-04")

    def test_dangling_dependency_dropped(self) -> None:
        plan = [
            wp(
                "WP1",
                task("T1", "2024-01-01", "2024-01-05"),
                task("T2", "2024-01-03", "2024-01-06", dep("T1"), dep("ZZ")),
            )
        ]

        result = CalendarPropagator().propagate(plan)

        assert dates_of(result.work_packages)["T2"] == ("2024-01-06", "2024-01-09")
        assert result.warnings == ["T2 depends on unknown item ZZ (ignored)"]

    def test_undated_task_passed_through(self) -> None:
        undated = task("X", None, "garbage", dep("T1"))
        plan = [wp("WP1", task("T1", "2024-01-01", "2024-01-05"), undated)]

        result = CalendarPropagator().propagate(plan)

        assert result.work_packages[0].tasks[1] is undated
        assert "X skipped" in result.warnings[0]

    def test_milestone_shifts_like_zero_duration_task(self) -> None:
        plan = [
            wp(
                "WP1",
                task("T1", "2024-01-01", "2024-01-05"),
                milestone("M", "2024-01-03", dep("T1")),
                task("T3", "2024-01-02", "2024-01-04", dep("M")),
            )
        ]

        result = CalendarPropagator().propagate(plan, ["T1"])

        assert result.work_packages[0].milestones[0].date == "2024-01-06"
        assert dates_of(result.work_packages)["T3"] == ("2024-01-07", "2024-01-09")

    def test_milestones_ignored_when_disabled(self) -> None:
        config = SchedulingConfig(include_milestones=False)
        plan = [
            wp(
                "WP1",
                task("T1", "2024-01-01", "2024-01-05"),
                milestone("M", "2024-01-03", dep("T1")),
            )
        ]

        result = CalendarPropagator(config).propagate(plan)

        assert result.work_packages[0].milestones[0].date == "2024-01-03"

    def test_only_scheduled_duplicate_moves(self) -> None:
        plan = [
            wp(
                "WP1",
                task("T1", "2024-01-01", "2024-01-05"),
                task("T2", "2024-01-01", "2024-01-02"),
            ),
            wp("WP2", task("T2", "2024-01-03", "2024-01-06", dep("T1"))),
        ]

        result = CalendarPropagator().propagate(plan)

        assert result.work_packages[0].tasks[1].start_date == "2024-01-01"
        assert result.work_packages[1].tasks[0].start_date == "2024-01-06"

    def test_unknown_edited_id_changes_nothing(self) -> None:
        result = CalendarPropagator().propagate(_example_plan(), ["NOPE"])

        assert result.changes == {}

    def test_moves_logged_at_changes_level(self) -> None:
        stream = StringIO()
        setup_logger(1, stream=stream)

        CalendarPropagator().propagate(_example_plan())

        assert "Moved T2: 2024-01-03..2024-01-06 -> 2024-01-06..2024-01-09 (+3d, FS on T1)" in (
            stream.getvalue()
        )

    def test_silent_by_default(self) -> None:
        stream = StringIO()
        setup_logger(0, stream=stream)

        CalendarPropagator().propagate(_example_plan())

        assert stream.getvalue() == ""


class TestApplyDateEdit:
    """Test building the edited snapshot."""

    def test_edit_task_dates(self) -> None:
        edited = apply_date_edit(_example_plan(), "T1", start="2024-01-02", end=date(2024, 1, 8))

        assert dates_of(edited)["T1"] == ("2024-01-02", "2024-01-08")

    def test_edit_keeps_omitted_side(self) -> None:
        edited = apply_date_edit(_example_plan(), "T1", end="2024-01-07")

        assert dates_of(edited)["T1"] == ("2024-01-01", "2024-01-07")

    def test_start_only_moves_whole_task(self) -> None:
        edited = apply_date_edit(_example_plan(), "T1", start="2024-02-01")

        assert dates_of(edited)["T1"] == ("2024-02-01", "2024-02-05")

    def test_end_before_start_rejected(self) -> None:
        with pytest.raises(ValueError, match=r"T1 would end \(2023-12-31\) before it starts"):
            apply_date_edit(_example_plan(), "T1", end="2023-12-31")

        with pytest.raises(ValueError, match="before it starts"):
            apply_date_edit(_example_plan(), "T1", start="2024-01-09", end="2024-01-08")

    def test_start_only_edit_propagates(self) -> None:
        edited = apply_date_edit(_example_plan(), "T1", start="2024-02-01")

        result = CalendarPropagator().propagate(edited, ["T1"])

        assert result.diagnostics == []
        assert dates_of(result.work_packages)["T2"] == ("2024-02-06", "2024-02-09")

    def test_edit_milestone(self) -> None:
        plan = [wp("WP1", milestone("M", "2024-01-03"))]

        edited = apply_date_edit(plan, "M", start="2024-02-01")

        assert edited[0].milestones[0].date == "2024-02-01"

    def test_unknown_id(self) -> None:
        with pytest.raises(KeyError):
            apply_date_edit(_example_plan(), "NOPE", start="2024-01-01")

    def test_invalid_date(self) -> None:
        with pytest.raises(ValueError, match="Invalid date"):
            apply_date_edit(_example_plan(), "T1", start="01/02/2024")

    def test_edit_then_propagate(self) -> None:
        edited = apply_date_edit(_example_plan(), "T1", end="2024-01-10")

        result = CalendarPropagator().propagate(edited, ["T1"])

        assert dates_of(result.work_packages)["T2"] == ("2024-01-11", "2024-01-14")
