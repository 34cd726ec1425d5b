"""Logging configuration for workplan with custom verbosity levels."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

from .exceptions import Diagnostic, InvalidDateSkipped

# Custom levels between the standard ones
CHANGES_LEVEL = 25  # Between INFO (20) and WARNING (30) - date moves, relabelled links
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20) - skipped items, dropped dependencies

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0  # Only errors
VERBOSITY_CHANGES = 1  # Show date changes
VERBOSITY_CHECKS = 2  # Show graph checks
VERBOSITY_DEBUG = 3  # Full pass-by-pass output


class WorkplanLogger(logging.Logger):
    """Logger with semantic verbosity methods.

    - changes(): verbosity level 1 - dates moved by propagation
    - checks(): verbosity level 2 - items skipped, dependencies dropped
    - debug(): verbosity level 3 - forward/backward pass details
    """

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log changes (verbosity level 1)."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log checks (verbosity level 2)."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)

    def diagnostic(self, diagnostic: Diagnostic) -> None:
        """Log a skipped item or a dropped dependency (verbosity level 2)."""
        if isinstance(diagnostic, InvalidDateSkipped):
            self.checks(f"  Skipping {diagnostic}")
        else:
            self.checks(f"  Dropping dependency: {diagnostic}")


def get_logger() -> WorkplanLogger:
    """Get the workplan logger instance (singleton)."""
    logging.setLoggerClass(WorkplanLogger)
    logger = logging.getLogger("workplan")
    assert isinstance(logger, WorkplanLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the workplan logger with a verbosity level.

    Can be called multiple times to reconfigure the logger.

    Args:
        verbosity: 0=silent (errors only), 1=changes, 2=checks, 3=debug
        stream: Optional output stream (defaults to sys.stderr, useful for testing)
    """
    logger = get_logger()
    logger.handlers.clear()

    level_map = {
        VERBOSITY_SILENT: logging.ERROR,
        VERBOSITY_CHANGES: CHANGES_LEVEL,
        VERBOSITY_CHECKS: CHECKS_LEVEL,
        VERBOSITY_DEBUG: logging.DEBUG,
    }
    logger.setLevel(level_map.get(verbosity, logging.ERROR))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Reset the logger to a clean state (used between tests)."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def debug_enabled() -> bool:
    """Check if debug-level logging is enabled (verbosity >= 3)."""
    return get_logger().isEnabledFor(logging.DEBUG)


def checks_enabled() -> bool:
    """Check if checks-level logging is enabled (verbosity >= 2)."""
    return get_logger().isEnabledFor(CHECKS_LEVEL)
