"""rerunner CLI - rerun command.

Usage::

    rerun 'go build ./cmd/app' './app --port 8080'
    rerun --exts '+ .tmpl' make:generate,build ./bin/server
    rerun --sigterm --clear -- 'pytest -x' 'python -m app'

Every COMMAND but the last must succeed before the next starts; the last
keeps running until the next change restarts the pipeline.
"""

from pathlib import Path
from typing import Any

import click
from click.core import ParameterSource

from rerunner import __version__
from rerunner.cli.utils import DURATION, expand_commands
from rerunner.config.constants import (
    DEFAULT_EXTENSIONS,
    DEFAULT_INTERVAL_SEC,
    DEFAULT_SKIP_PATTERNS,
)
from rerunner.config.loader import load_config
from rerunner.core.console import pluralize, status
from rerunner.core.errors import ConfigError
from rerunner.core.logging import configure_logging
from rerunner.runner.loop import WatchLoop
from rerunner.runner.supervisor import Supervisor
from rerunner.runner.terminate import select_terminator
from rerunner.watch.rules import WatchRule

# CLI parameter -> (config section, config key)
_OVERRIDES: dict[str, tuple[str, str]] = {
    "exts": ("watch", "extensions"),
    "patterns": ("watch", "patterns"),
    "skip_patterns": ("watch", "skip_patterns"),
    "skip_dot_dirs": ("watch", "skip_dot_dirs"),
    "skip_dot_files": ("watch", "skip_dot_files"),
    "interval": ("watch", "interval_sec"),
    "verbose": ("run", "verbose"),
    "clear": ("run", "clear"),
    "clear_cmd": ("run", "clear_cmd"),
    "sigterm": ("run", "sigterm"),
}


def _collect_overrides(ctx: click.Context, params: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Config overrides for the flags actually given on the command line."""
    overrides: dict[str, dict[str, Any]] = {}
    for name, (section, key) in _OVERRIDES.items():
        if ctx.get_parameter_source(name) is not ParameterSource.COMMANDLINE:
            continue
        overrides.setdefault(section, {})[key] = params[name]
    return overrides


@click.command()
@click.version_option(version=__version__, prog_name="rerun")
@click.argument("commands", nargs=-1, required=True)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory to watch (default: current directory)",
)
@click.option(
    "--exts",
    default=DEFAULT_EXTENSIONS,
    show_default=True,
    help="Space separated extensions to watch; start with '+ ' to add to the defaults",
)
@click.option("--patterns", default="", help="Space separated globs to watch")
@click.option(
    "--skip-dot-dirs/--no-skip-dot-dirs",
    default=True,
    show_default=True,
    help="Skip directories whose name starts with a dot",
)
@click.option(
    "--skip-dot-files/--no-skip-dot-files",
    default=False,
    show_default=True,
    help="Skip files whose name starts with a dot",
)
@click.option(
    "--skip-patterns",
    default=" ".join(DEFAULT_SKIP_PATTERNS),
    show_default=True,
    help="Space separated globs to skip",
)
@click.option(
    "--interval",
    type=DURATION,
    default=DEFAULT_INTERVAL_SEC,
    show_default=True,
    help="Time between scans, e.g. 2s, 500ms, 1.5",
)
@click.option("--verbose", is_flag=True, help="Print each command before running it")
@click.option("--clear", is_flag=True, help="Clear the terminal before each run")
@click.option("--clear-cmd", default=None, help="Program used to clear the terminal")
@click.option("--sigterm", is_flag=True, help="Send SIGTERM instead of SIGKILL (POSIX)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    commands: tuple[str, ...],
    root: Path | None,
    debug: bool,
    **params: Any,
) -> None:
    """Run COMMANDS, and run them again whenever a watched file changes.

    A COMMAND of the form make:a,b expands to 'make a' then 'make b'.
    """
    configure_logging(level="DEBUG" if debug else "WARNING")

    root = (root or Path.cwd()).resolve()
    try:
        config = load_config(root, **_collect_overrides(ctx, params))
    except ConfigError as e:
        raise click.ClickException(e.message) from e

    if debug:
        config.logging.level = "DEBUG"
        for output in config.logging.outputs:
            output.level = "DEBUG"
    configure_logging(config=config.logging)

    pipeline = expand_commands(commands)

    supervisor = Supervisor(
        terminator=select_terminator(config.run.teardown_timeout_sec),
        graceful=config.run.sigterm,
        verbose=config.run.verbose,
        clear=config.run.clear,
        clear_cmd=config.run.clear_cmd,
    )
    loop = WatchLoop(
        root=root,
        rule=WatchRule.from_config(config.watch),
        supervisor=supervisor,
        commands=pipeline,
        interval=config.watch.interval_sec,
    )

    if config.run.verbose:
        status(f"Watching {root} ({pluralize(len(pipeline), 'command')})")

    try:
        loop.run_forever()
    except KeyboardInterrupt:
        supervisor.teardown()
        click.echo("\nStopped")


if __name__ == "__main__":
    cli()
