"""Scheduler package - dependency-driven work plan scheduling.

This package provides:
- Critical path analysis (forward/backward passes over task durations)
- Calendar propagation of edited dates to dependent tasks
- Relaxation of finish-to-start links that the dates already overlap

Main entry points:
- SchedulingService: High-level service over a snapshot of work packages
- CriticalPathAnalyzer: CPM over a dependency graph
- CalendarPropagator: Push dependents forward after an edit

Configuration:
- SchedulingConfig: Main configuration
- CalendarConfig: Calendar propagation settings
"""

# Configuration
from .config import CalendarConfig, SchedulingConfig

# Core dataclasses
from .core import (
    CriticalPathResult,
    DateChange,
    PropagationResult,
    RelaxResult,
    ScheduleEntry,
    ValidationReport,
)

# Algorithms
from .critical_path import CriticalPathAnalyzer
from .propagation import CalendarPropagator, apply_date_edit
from .sanitize import relax_overlapping_dependencies

# High-level service
from .service import SchedulingService

__all__ = [
    # Core dataclasses
    "ScheduleEntry",
    "CriticalPathResult",
    "DateChange",
    "PropagationResult",
    "RelaxResult",
    "ValidationReport",
    # Configuration
    "SchedulingConfig",
    "CalendarConfig",
    # High-level service
    "SchedulingService",
    # Algorithms
    "CriticalPathAnalyzer",
    "CalendarPropagator",
    "apply_date_edit",
    "relax_overlapping_dependencies",
]
