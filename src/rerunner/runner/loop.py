"""Control loop: scan, run on change, sleep, repeat.

The loop never exits on its own. A synchronous stage that hangs blocks it,
since stages have no timeout.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from rerunner.core.errors import InternalError
from rerunner.runner.supervisor import RunResult, Supervisor
from rerunner.watch.rules import WatchRule
from rerunner.watch.scanner import ScanState, scan

logger = structlog.get_logger()


@dataclass
class WatchLoop:
    root: Path
    rule: WatchRule
    supervisor: Supervisor
    commands: Sequence[str]
    interval: float = 2.0
    sleep: Callable[[float], None] = time.sleep

    state: ScanState = field(default_factory=ScanState, init=False)
    cycles: int = field(default=0, init=False)

    def step(self) -> RunResult | None:
        """One cycle. Returns the run result when the cycle triggered a run."""
        self.cycles += 1
        if not scan(self.root, self.rule, self.state, self.supervisor.last_run):
            return None
        logger.debug("change_detected", cycle=self.cycles, files=self.state.file_count)
        return self.supervisor.run(self.commands)

    def run_forever(self) -> None:
        logger.info(
            "watch_started",
            root=str(self.root),
            interval=self.interval,
            stages=len(self.commands),
        )
        while True:
            try:
                self.step()
            except Exception as e:
                err = InternalError.unexpected(str(e), cycle=self.cycles)
                logger.error("cycle_failed", exc_info=True, **err.to_dict())
            self.sleep(self.interval)
