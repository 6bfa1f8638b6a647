"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (CLI flags)
2. Environment variables (RERUNNER__SECTION__KEY)
3. Tree YAML (<root>/.rerunner.yaml)
4. Global YAML (~/.config/rerunner/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    RERUNNER__<SECTION>__<KEY>=<VALUE>

Examples:
    RERUNNER__WATCH__INTERVAL_SEC=500ms
    RERUNNER__WATCH__SKIP_PATTERNS="node_modules/* build/*"
    RERUNNER__RUN__SIGTERM=true
    RERUNNER__LOGGING__LEVEL=DEBUG
"""

import re
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import NoDecode

from rerunner.config.constants import (
    DEFAULT_EXTENSIONS,
    DEFAULT_INTERVAL_SEC,
    DEFAULT_SKIP_PATTERNS,
    DEFAULTS_PREFIX,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str | float | int) -> float:
    """Parse a duration into seconds.

    Accepts plain numbers (seconds) and Go-style duration strings made of
    number+unit parts, e.g. ``2s``, ``500ms``, ``1m30s``.

    Raises:
        ValueError: If the value is negative or not a duration.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, int | float):
        seconds = float(value)
    else:
        text = value.strip()
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos == 0 or pos != len(text):
                raise ValueError(f"Invalid duration: {value!r}") from None
    if seconds < 0:
        raise ValueError(f"Duration must not be negative: {value!r}")
    return seconds


def split_words(value: Any) -> Any:
    """Split a space separated string into a list; pass other values through."""
    if isinstance(value, str):
        return value.split()
    return value


def normalize_extensions(raw: str) -> frozenset[str]:
    """Resolve an extensions setting into a set of dotted extensions.

    A value starting with ``"+ "`` is appended to the default set. Each word
    gets a leading ``.`` if it lacks one, so ``js`` and ``.js`` are equivalent.
    """
    if raw.startswith(DEFAULTS_PREFIX):
        raw = DEFAULT_EXTENSIONS + " " + raw[len(DEFAULTS_PREFIX) :]

    exts: set[str] = set()
    for ext in raw.split():
        if not ext.startswith("."):
            ext = "." + ext
        exts.add(ext)
    return frozenset(exts)


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        RERUNNER__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Warnings cover spawn failures and bad patterns.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class WatchConfig(BaseModel):
    """Change detection configuration.

    Env vars:
        RERUNNER__WATCH__EXTENSIONS: Space separated extensions ("+ ..." appends)
        RERUNNER__WATCH__PATTERNS: Space separated watch globs
        RERUNNER__WATCH__SKIP_PATTERNS: Space separated skip globs
        RERUNNER__WATCH__SKIP_DOT_DIRS: Skip directories starting with a dot
        RERUNNER__WATCH__SKIP_DOT_FILES: Skip files starting with a dot
        RERUNNER__WATCH__INTERVAL_SEC: Poll interval (seconds or 2s/500ms)
    """

    extensions: str = Field(
        default=DEFAULT_EXTENSIONS,
        description="Space separated extensions. Prefix with '+ ' to extend the defaults.",
    )
    patterns: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Watch globs. Cannot re-include files excluded by extension.",
    )
    skip_patterns: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_PATTERNS),
        description="Skip globs. Matching directories are not descended.",
    )
    skip_dot_dirs: bool = Field(
        default=True,
        description="Skip any directory whose name starts with a dot.",
    )
    skip_dot_files: bool = Field(
        default=False,
        description="Skip any file whose name starts with a dot.",
    )
    interval_sec: float = Field(
        default=DEFAULT_INTERVAL_SEC,
        description="Seconds between scans. Lower values cost more CPU on large trees.",
    )

    @field_validator("patterns", "skip_patterns", mode="before")
    @classmethod
    def split_patterns(cls, v: Any) -> Any:
        return split_words(v)

    @field_validator("interval_sec", mode="before")
    @classmethod
    def validate_interval(cls, v: Any) -> float:
        return parse_duration(v)

    @property
    def extension_set(self) -> frozenset[str]:
        return normalize_extensions(self.extensions)


class RunConfig(BaseModel):
    """Pipeline execution configuration.

    Env vars:
        RERUNNER__RUN__VERBOSE: Print commands before executing them
        RERUNNER__RUN__CLEAR: Clear the terminal before each run
        RERUNNER__RUN__CLEAR_CMD: External program used to clear the terminal
        RERUNNER__RUN__SIGTERM: Use SIGTERM instead of SIGKILL (POSIX)
        RERUNNER__RUN__TEARDOWN_TIMEOUT_SEC: Wait for a stopped process
    """

    verbose: bool = Field(
        default=False,
        description="Print each resolved command line before executing it.",
    )
    clear: bool = Field(
        default=False,
        description="Clear the terminal before each run.",
    )
    clear_cmd: str | None = Field(
        default=None,
        description="Program to run instead of writing a terminal reset sequence.",
    )
    sigterm: bool = Field(
        default=False,
        description="On POSIX send SIGTERM instead of SIGKILL to the previous run.",
    )
    teardown_timeout_sec: float = Field(
        default=5.0,
        description="How long to wait for a terminated process to exit. "
        "A graceful stop that outlasts this is escalated to a kill.",
    )

    @field_validator("teardown_timeout_sec", mode="before")
    @classmethod
    def validate_timeout(cls, v: Any) -> float:
        return parse_duration(v)


class RerunnerConfig(BaseModel):
    """Root configuration for rerunner.

    All settings can be configured via:
    1. CLI flags
    2. Environment variables: RERUNNER__SECTION__KEY
    3. YAML config files (tree or global)
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    run: RunConfig = Field(default_factory=RunConfig)
