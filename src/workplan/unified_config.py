"""Unified configuration loader for scheduling and export settings.

A single optional file (workplan_config.yaml) holds all settings:

    scheduler:
      calendar:
        finish_to_start_gap_days: 1
      include_milestones: true
    interchange:
      start_time: "08:00:00"
      finish_time: "17:00:00"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from .interchange import InterchangeConfig
from .scheduler.config import SchedulingConfig

CONFIG_FILENAME = "workplan_config.yaml"


class UnifiedConfig(BaseModel):
    """Top-level configuration file contents."""

    scheduler: SchedulingConfig = SchedulingConfig()
    interchange: InterchangeConfig = InterchangeConfig()


def load_config(config_path: Path | str) -> UnifiedConfig:
    """Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open(encoding="utf-8") as f:
        data: Any = yaml.safe_load(f)

    if data is None:
        return UnifiedConfig()
    if not isinstance(data, dict):
        raise ValueError("Config must contain a mapping at the root level")

    return UnifiedConfig.model_validate(data)
