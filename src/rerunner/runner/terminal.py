"""Terminal clearing before a run."""

from __future__ import annotations

import subprocess
import sys

import structlog

from rerunner.config.constants import TERMINAL_RESET

logger = structlog.get_logger()


def clear_terminal(clear_cmd: str | None = None) -> None:
    """Reset the terminal, or run clear_cmd with inherited stdio when given.

    A failing clear command is logged and otherwise ignored.
    """
    if not clear_cmd:
        sys.stdout.write(TERMINAL_RESET)
        sys.stdout.flush()
        return

    try:
        subprocess.run([clear_cmd], check=False)
    except OSError as e:
        logger.warning("clear_cmd_failed", clear_cmd=clear_cmd, error=str(e))
