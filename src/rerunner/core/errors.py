"""rerunner error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Command parsing
- 4xxx: Process
- 5xxx: Scan
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Command parsing (3xxx)
    COMMAND_EMPTY = 3001

    # Process (4xxx)
    COMMAND_SPAWN_FAILED = 4001
    COMMAND_EXIT_NONZERO = 4002

    # Scan (5xxx)
    SCAN_WALK_FAILED = 5001
    SCAN_BAD_PATTERN = 5002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class RerunnerError(Exception):
    """Base error with structured context for logs."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'COMMAND_SPAWN_FAILED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured log fields."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(RerunnerError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class CommandError(RerunnerError):
    """A pipeline stage could not be parsed, started, or did not succeed."""

    @classmethod
    def empty(cls, raw: str) -> "CommandError":
        return cls(
            code=ErrorCode.COMMAND_EMPTY,
            message=f"Command has no program to run: {raw!r}",
            details={"command": raw},
        )

    @classmethod
    def spawn_failed(cls, argv: list[str], reason: str) -> "CommandError":
        return cls(
            code=ErrorCode.COMMAND_SPAWN_FAILED,
            message=f"Failed to start {argv[0]}: {reason}",
            details={"argv": argv, "reason": reason},
        )

    @classmethod
    def exit_nonzero(cls, argv: list[str], returncode: int) -> "CommandError":
        return cls(
            code=ErrorCode.COMMAND_EXIT_NONZERO,
            message=f"{argv[0]} exited with status {returncode}",
            retryable=True,
            details={"argv": argv, "returncode": returncode},
        )


class ScanError(RerunnerError):
    """Filesystem scan problems. Never fatal; the next cycle retries."""

    @classmethod
    def walk_failed(cls, path: str, reason: str) -> "ScanError":
        return cls(
            code=ErrorCode.SCAN_WALK_FAILED,
            message=f"Cannot scan {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def bad_pattern(cls, pattern: str, reason: str) -> "ScanError":
        return cls(
            code=ErrorCode.SCAN_BAD_PATTERN,
            message=f"Bad glob pattern {pattern!r}: {reason}",
            details={"pattern": pattern, "reason": reason},
        )


class InternalError(RerunnerError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
