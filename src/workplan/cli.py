"""Command-line interface for workplan."""

from __future__ import annotations

import json
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
import yaml

from .exceptions import CycleError, Diagnostic, WorkplanError
from .interchange import to_ms_project_xml
from .loader import load_work_plan
from .logger import setup_logger
from .models import WorkPlan
from .parser import write_work_plan
from .scheduler import CriticalPathResult, PropagationResult, SchedulingService
from .unified_config import UnifiedConfig

app = typer.Typer(
    name="workplan",
    help="Dependency scheduling for work plans - critical path, date propagation and export",
    add_completion=False,
)


class CpmFormat(str, Enum):
    """Output formats for the cpm command."""

    TABLE = "table"
    YAML = "yaml"
    JSON = "json"


class ExportFormat(str, Enum):
    """Output formats for the export command."""

    XML = "xml"
    JSON = "json"


PlanArgument = Annotated[Path, typer.Argument(help="Path to the work plan YAML/JSON file")]


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to unified config file (default: workplan_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for workplan commands."""
    setup_logger(verbose)
    ctx.obj = config


def _load(ctx: typer.Context, file: Path) -> tuple[WorkPlan, UnifiedConfig]:
    """Load the plan and its config (--config wins), turning load failures into exit code 1."""
    try:
        return load_work_plan(file, ctx.obj)
    except (WorkplanError, FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _service(plan: WorkPlan, config: UnifiedConfig) -> SchedulingService:
    return SchedulingService(
        plan.work_packages, config=config.scheduler, interchange_config=config.interchange
    )


def _abort_on_cycle(error: CycleError) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(1)


def _echo_warnings(diagnostics: list[Diagnostic]) -> None:
    if not diagnostics:
        return
    typer.echo("\nWarnings:", err=True)
    for diagnostic in diagnostics:
        typer.echo(f"  - {diagnostic}", err=True)


def _write_text(output: Path | None, text: str, what: str) -> None:
    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"{what} written to {output}")
    else:
        typer.echo(text, nl=False)


@app.command()
def validate(ctx: typer.Context, file: PlanArgument) -> None:
    """Check a work plan for cycles, duplicate ids, dangling links and bad dates."""
    plan, config = _load(ctx, file)
    report = _service(plan, config).validate()

    for dup in report.duplicate_ids:
        typer.echo(f"Duplicate id: {dup}")
    for diagnostic in report.diagnostics:
        typer.echo(f"Warning: {diagnostic}")
    if report.cycle is not None:
        typer.echo(f"Error: {report.cycle}", err=True)

    if not report.is_valid:
        raise typer.Exit(1)
    typer.echo("Work plan is valid")


def _format_cpm_table(result: CriticalPathResult) -> str:
    lines = [
        "Critical Path Analysis",
        "=" * 72,
        f"{'Task':<16}{'Dur':>6}{'ES':>7}{'EF':>7}{'LS':>7}{'LF':>7}{'Slack':>8}  Critical",
    ]
    for entry in result.entries.values():
        lines.append(
            f"{entry.task_id:<16}{entry.duration:>6}{entry.earliest_start:>7}"
            f"{entry.earliest_finish:>7}{entry.latest_start:>7}{entry.latest_finish:>7}"
            f"{entry.slack:>8}  {'yes' if entry.is_critical else ''}"
        )
    lines.append("")
    lines.append(f"Project finish: day {result.project_finish}")
    lines.append(f"Critical tasks: {', '.join(result.critical_task_ids) or '(none)'}")
    return "\n".join(lines) + "\n"


@app.command()
def cpm(
    ctx: typer.Context,
    file: PlanArgument,
    *,
    output_format: Annotated[
        CpmFormat, typer.Option("--format", "-f", help="Output format")
    ] = CpmFormat.TABLE,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Run critical path analysis and show earliest/latest offsets and slack."""
    plan, config = _load(ctx, file)
    try:
        result = _service(plan, config).analyze_critical_path()
    except CycleError as e:
        raise _abort_on_cycle(e) from None

    if output_format == CpmFormat.TABLE:
        text = _format_cpm_table(result)
    elif output_format == CpmFormat.JSON:
        text = json.dumps(result.to_dict(), indent=2) + "\n"
    else:
        text = yaml.safe_dump(result.to_dict(), default_flow_style=False, sort_keys=False)

    _write_text(output, text, "Critical path")
    _echo_warnings(result.diagnostics)


def _report_propagation(
    plan: WorkPlan,
    file: Path,
    result: PropagationResult,
    output: Path | None,
    *,
    in_place: bool,
) -> None:
    if result.changes:
        typer.echo(f"Moved {len(result.changes)} item(s):")
        for change in result.changes.values():
            typer.echo(
                f"  {change.item_id}: {change.old_start}..{change.old_end} -> "
                f"{change.new_start}..{change.new_end} (+{change.shift_days}d)"
            )
    else:
        typer.echo("No dates changed")

    updated = replace(plan, work_packages=result.work_packages)
    target = file if in_place else output
    if target:
        write_work_plan(target, updated)
        typer.echo(f"Work plan written to {target}")
    _echo_warnings(result.diagnostics)


@app.command()
def propagate(
    ctx: typer.Context,
    file: PlanArgument,
    *,
    edited: Annotated[
        list[str] | None,
        typer.Option(
            "--edited", "-e", help="Id of an edited item (repeatable). Default: all items"
        ),
    ] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    in_place: Annotated[
        bool, typer.Option("--in-place", help="Write the updated plan back to FILE")
    ] = False,
) -> None:
    """Push dependent dates forward until every dependency holds."""
    plan, config = _load(ctx, file)
    try:
        result = _service(plan, config).propagate(edited or None)
    except CycleError as e:
        raise _abort_on_cycle(e) from None
    _report_propagation(plan, file, result, output, in_place=in_place)


@app.command()
def reschedule(  # noqa: PLR0913 - CLI command needs multiple options
    ctx: typer.Context,
    file: PlanArgument,
    item_id: Annotated[str, typer.Argument(help="Id of the task or milestone to move")],
    *,
    start: Annotated[
        str | None, typer.Option("--start", help="New start date (YYYY-MM-DD)")
    ] = None,
    end: Annotated[str | None, typer.Option("--end", help="New end date (YYYY-MM-DD)")] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    in_place: Annotated[
        bool, typer.Option("--in-place", help="Write the updated plan back to FILE")
    ] = False,
) -> None:
    """Change one item's dates and propagate the edit to its dependents."""
    if start is None and end is None:
        typer.echo("Error: Give --start and/or --end", err=True)
        raise typer.Exit(1)

    plan, config = _load(ctx, file)
    try:
        result = _service(plan, config).reschedule(item_id, start=start, end=end)
    except CycleError as e:
        raise _abort_on_cycle(e) from None
    except KeyError:
        typer.echo(f"Error: Unknown task or milestone '{item_id}'", err=True)
        raise typer.Exit(1) from None
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    _report_propagation(plan, file, result, output, in_place=in_place)


@app.command()
def relax(
    ctx: typer.Context,
    file: PlanArgument,
    *,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    in_place: Annotated[
        bool, typer.Option("--in-place", help="Write the updated plan back to FILE")
    ] = False,
) -> None:
    """Relabel FS dependencies as SS where the dates already overlap."""
    plan, config = _load(ctx, file)
    result = _service(plan, config).relax_overlaps()

    for task_id, predecessor_id in result.relabelled:
        typer.echo(f"  {task_id} <- {predecessor_id}: FS -> SS")
    typer.echo(f"Relabelled {len(result.relabelled)} dependency(ies)")

    target = file if in_place else output
    if target:
        write_work_plan(target, replace(plan, work_packages=result.work_packages))
        typer.echo(f"Work plan written to {target}")


@app.command()
def export(
    ctx: typer.Context,
    file: PlanArgument,
    *,
    output_format: Annotated[
        ExportFormat, typer.Option("--format", "-f", help="Output format")
    ] = ExportFormat.XML,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Export the plan for desktop scheduling tools (MS Project XML or JSON records)."""
    plan, config = _load(ctx, file)
    document = _service(plan, config).export_interchange()

    if output_format == ExportFormat.XML:
        text = to_ms_project_xml(document, title=plan.metadata.title)
    else:
        text = json.dumps(document.to_dict(), indent=2, ensure_ascii=False) + "\n"
    _write_text(output, text, "Export")


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
