"""Command pipeline supervision."""

from rerunner.runner.loop import WatchLoop
from rerunner.runner.supervisor import RunResult, Supervisor
from rerunner.runner.terminate import (
    PosixTerminator,
    Terminator,
    WindowsTerminator,
    select_terminator,
)
from rerunner.runner.tokenizer import format_command, tokenize

__all__ = [
    "PosixTerminator",
    "RunResult",
    "Supervisor",
    "Terminator",
    "WatchLoop",
    "WindowsTerminator",
    "format_command",
    "select_terminator",
    "tokenize",
]
