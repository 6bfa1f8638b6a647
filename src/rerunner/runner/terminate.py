"""Platform-specific teardown of a previous run's processes.

The supervisor only sees the Terminator protocol; the implementation is
picked once at startup by select_terminator().

- POSIX: SIGTERM (graceful) or SIGKILL, then wait for the exit
- Windows: ``taskkill /t /f`` ends the whole tree rooted at the process,
  since the command may itself have started a shell
"""

from __future__ import annotations

import signal
import subprocess
import sys
from dataclasses import dataclass
from typing import Protocol

import structlog

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SEC = 5.0


class Terminator(Protocol):
    def terminate(self, process: subprocess.Popen[bytes], *, graceful: bool) -> None: ...


@dataclass
class PosixTerminator:
    """Signal the process, then wait for it to exit.

    A graceful stop that outlasts the timeout is escalated to SIGKILL. A
    process that survives SIGKILL past the timeout is left behind.
    """

    timeout: float = DEFAULT_TIMEOUT_SEC

    def terminate(self, process: subprocess.Popen[bytes], *, graceful: bool) -> None:
        if process.poll() is not None:
            return

        if graceful:
            process.send_signal(signal.SIGTERM)
            try:
                process.wait(timeout=self.timeout)
                return
            except subprocess.TimeoutExpired:
                logger.warning("graceful_stop_timeout", pid=process.pid, timeout=self.timeout)

        process.kill()
        process.wait(timeout=self.timeout)


@dataclass
class WindowsTerminator:
    """Kill the whole process tree with taskkill."""

    timeout: float = DEFAULT_TIMEOUT_SEC

    def terminate(self, process: subprocess.Popen[bytes], *, graceful: bool) -> None:  # noqa: ARG002
        if process.poll() is not None:
            return

        result = subprocess.run(
            ["taskkill", "/t", "/f", "/pid", str(process.pid)],
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            logger.warning(
                "taskkill_failed",
                pid=process.pid,
                returncode=result.returncode,
                output=result.stdout.strip() or result.stderr.strip(),
            )
        process.wait(timeout=self.timeout)


def select_terminator(timeout: float = DEFAULT_TIMEOUT_SEC) -> Terminator:
    """Pick the terminator for the running platform."""
    if sys.platform == "win32":
        return WindowsTerminator(timeout=timeout)
    return PosixTerminator(timeout=timeout)
