"""Tests for scheduler log output at different verbosity levels."""

from io import StringIO

from tests.conftest import dep, task, timed, wp
from workplan.exceptions import DanglingDependencyWarning, InvalidDateSkipped
from workplan.graph import build_dependency_graph
from workplan.logger import (
    checks_enabled,
    debug_enabled,
    get_logger,
    reset_logger,
    setup_logger,
)
from workplan.models import WorkPackage
from workplan.scheduler import CalendarPropagator, CriticalPathAnalyzer, SchedulingConfig


def _plan() -> list[WorkPackage]:
    return [
        wp(
            "WP1",
            task("T1", "2024-01-01", "2024-01-05"),
            task("T2", "2024-01-03", "2024-01-06", dep("T1"), dep("GHOST")),
            task("T3", None, "2024-01-06"),
        )
    ]


def _run(verbosity: int) -> str:
    output_stream = StringIO()
    setup_logger(verbosity, stream=output_stream)

    try:
        CalendarPropagator(SchedulingConfig()).propagate(_plan())
        output = output_stream.getvalue()
    finally:
        reset_logger()

    return output


def test_verbosity_0_silent():
    """Test that verbosity 0 produces no output."""
    assert _run(0) == ""


def test_verbosity_1_shows_moves():
    """Test that verbosity 1 shows moved dates only."""
    output = _run(1)

    assert "Moved T2: 2024-01-03..2024-01-06 -> 2024-01-06..2024-01-09 (+3d, FS on T1)" in output
    assert "Skipping" not in output
    assert "Dropping dependency" not in output


def test_verbosity_2_shows_checks():
    """Test that verbosity 2 shows skipped items and dropped dependencies."""
    output = _run(2)

    assert "Moved T2" in output
    assert "Skipping T3 skipped: missing or unparseable start/end date" in output
    assert "Dropping dependency: T2 depends on unknown item GHOST (ignored)" in output
    assert "Built dependency graph" not in output


def test_verbosity_3_shows_passes():
    """Test that verbosity 3 shows graph and pass details."""
    plan = [wp("WP1", timed("A", 2), timed("B", 3, dep("A")))]
    output_stream = StringIO()
    setup_logger(3, stream=output_stream)

    try:
        CriticalPathAnalyzer(build_dependency_graph(plan)).analyze()
        output = output_stream.getvalue()
    finally:
        reset_logger()

    assert "Built dependency graph: 2 nodes, 1 edges" in output
    assert "forward B: ES=2 EF=5 (driven by A)" in output
    assert "backward A: LS=0 LF=2 (bound by B)" in output
    assert "CPM: 2 tasks, project finish 5, critical: A, B" in output


def test_level_helpers():
    """Test checks_enabled and debug_enabled follow the configured level."""
    setup_logger(2, stream=StringIO())
    try:
        assert checks_enabled()
        assert not debug_enabled()
        setup_logger(3, stream=StringIO())
        assert debug_enabled()
    finally:
        reset_logger()

    assert not checks_enabled()


def test_diagnostic_messages():
    """Test diagnostics are worded by kind at verbosity 2."""
    output_stream = StringIO()
    setup_logger(2, stream=output_stream)

    try:
        logger = get_logger()
        logger.diagnostic(InvalidDateSkipped("T9", "missing or unparseable start/end date"))
        logger.diagnostic(DanglingDependencyWarning("T2", "GHOST"))
        output = output_stream.getvalue()
    finally:
        reset_logger()

    assert output.splitlines() == [
        "  Skipping T9 skipped: missing or unparseable start/end date",
        "  Dropping dependency: T2 depends on unknown item GHOST (ignored)",
    ]
