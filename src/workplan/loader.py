"""Work plan loading with config discovery."""

from __future__ import annotations

from pathlib import Path

from .models import WorkPlan
from .parser import WorkPlanParser
from .unified_config import CONFIG_FILENAME, UnifiedConfig, load_config


def discover_config(
    plan_path: Path | None = None,
    config_path: Path | None = None,
) -> UnifiedConfig:
    """Discover configuration from various locations.

    Search order:
    1. Explicit config_path argument (the CLI passes --config here)
    2. Work plan directory / workplan_config.yaml
    3. Current directory / workplan_config.yaml

    Falls back to defaults when nothing is found.
    """
    if config_path and config_path.exists():
        return load_config(config_path)

    if plan_path is not None:
        dir_config = Path(plan_path).parent / CONFIG_FILENAME
        if dir_config.exists():
            return load_config(dir_config)

    cwd_config = Path(CONFIG_FILENAME)
    if cwd_config.exists():
        return load_config(cwd_config)

    return UnifiedConfig()


def load_work_plan(
    path: Path | str,
    config_path: Path | None = None,
) -> tuple[WorkPlan, UnifiedConfig]:
    """Load a work plan file together with its configuration.

    Cycles and dangling references are not rejected here; the scheduling
    operations report them.
    """
    path = Path(path)
    config = discover_config(path, config_path)
    plan = WorkPlanParser().parse_file(path)
    return plan, config
