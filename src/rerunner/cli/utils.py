"""CLI utilities."""

from collections.abc import Iterable
from typing import Any

import click

from rerunner.config.constants import MAKE_PREFIX
from rerunner.config.models import parse_duration


def expand_commands(args: Iterable[str]) -> list[str]:
    """Expand ``make:`` shorthands into plain command strings.

    ``make:build, test`` becomes ``make build`` and ``make test``. Other
    arguments pass through unchanged.

    Examples:
        ["make:a,b", "./app"] -> ["make a", "make b", "./app"]
        ["make:"] -> ["make"]
    """
    commands: list[str] = []
    for arg in args:
        if not arg.startswith(MAKE_PREFIX):
            commands.append(arg)
            continue
        for target in arg[len(MAKE_PREFIX) :].split(","):
            commands.append(f"make {target.strip()}".strip())
    return commands


class DurationType(click.ParamType):
    """Seconds as a float, from ``2``, ``2.5``, ``500ms`` or ``1m30s``."""

    name = "duration"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> float:
        if isinstance(value, float):
            return value
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


DURATION = DurationType()
