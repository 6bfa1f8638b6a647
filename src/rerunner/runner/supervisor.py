"""Pipeline supervisor: teardown, then sequencing.

One run:
1. Advance the watermark (last_run) to now
2. Optionally clear the terminal
3. Terminate every process retained from the previous run
4. Start the commands in order. All but the last are waited on and must
   exit 0; the last is left running and retained for the next teardown

Nothing here raises into the control loop. Failures halt the current run,
are logged, and are reported in the RunResult.
"""

from __future__ import annotations

import subprocess
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import structlog

from rerunner.core.console import status
from rerunner.core.errors import CommandError
from rerunner.core.logging import clear_run_id, set_run_id
from rerunner.runner.terminal import clear_terminal
from rerunner.runner.terminate import Terminator
from rerunner.runner.tokenizer import format_command, tokenize

logger = structlog.get_logger()

Spawner = Callable[[list[str]], "subprocess.Popen[bytes]"]


@dataclass
class RunResult:
    """Outcome of one pipeline run."""

    started: list[list[str]] = field(default_factory=list)
    completed: bool = False
    error: CommandError | None = None


@dataclass
class Supervisor:
    """Owns the retained process handles and the last_run watermark."""

    terminator: Terminator
    graceful: bool = False
    verbose: bool = False
    clear: bool = False
    clear_cmd: str | None = None
    clock: Callable[[], float] = time.time
    spawn: Spawner = subprocess.Popen

    last_run: float = 0.0
    _processes: list[subprocess.Popen[bytes]] = field(default_factory=list, init=False)

    @property
    def processes(self) -> tuple[subprocess.Popen[bytes], ...]:
        return tuple(self._processes)

    def run(self, commands: Sequence[str]) -> RunResult:
        """Tear down the previous run and start the pipeline again."""
        self.last_run = max(self.last_run, self.clock())
        run_id = set_run_id()
        logger.info("run_started", stages=len(commands))

        try:
            if self.clear:
                clear_terminal(self.clear_cmd)
            self.teardown()
            result = self._sequence(commands)
        finally:
            clear_run_id()

        if result.error is not None:
            logger.warning("run_halted", run_id=run_id, **result.error.to_dict())
            status(result.error.message, style="error")
        return result

    def teardown(self) -> None:
        """Terminate every retained process. Errors are logged, never raised."""
        for process in self._processes:
            try:
                self.terminator.terminate(process, graceful=self.graceful)
                logger.debug("process_terminated", pid=process.pid)
            except (OSError, subprocess.SubprocessError) as e:
                logger.warning("terminate_failed", pid=process.pid, error=str(e))
        self._processes.clear()

    def _sequence(self, commands: Sequence[str]) -> RunResult:
        result = RunResult()
        last = len(commands) - 1

        for i, raw in enumerate(commands):
            try:
                argv = tokenize(raw)
            except CommandError as e:
                result.error = e
                return result

            if self.verbose:
                status(format_command(argv), style="command")

            try:
                process = self.spawn(argv)
            except (OSError, ValueError, subprocess.SubprocessError) as e:
                result.error = CommandError.spawn_failed(argv, str(e))
                return result

            self._processes.append(process)
            result.started.append(argv)
            logger.debug("stage_started", stage=i, pid=process.pid, final=i == last)

            if i == last:
                result.completed = True
                break

            returncode = process.wait()
            if returncode != 0:
                result.error = CommandError.exit_nonzero(argv, returncode)
                return result

        return result
