"""Configuration classes for the scheduling engine."""

from pydantic import BaseModel, Field


class CalendarConfig(BaseModel):
    """Calendar propagation settings."""

    # Days between a predecessor's end and an FS dependent's start. The CPM
    # pass works on abstract offsets and never applies this gap.
    finish_to_start_gap_days: int = Field(default=1, ge=0)


class SchedulingConfig(BaseModel):
    """Configuration for graph building, CPM and propagation."""

    calendar: CalendarConfig = CalendarConfig()
    include_milestones: bool = True  # Milestones act as calendar anchors
    report_dangling_dependencies: bool = True  # Surface dropped links in result diagnostics
