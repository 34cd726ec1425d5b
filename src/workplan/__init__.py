"""Workplan - dependency scheduling for work plans."""

__version__ = "0.1.0"
