"""Core module exports."""

from rerunner.core.errors import (
    CommandError,
    ConfigError,
    ErrorCode,
    InternalError,
    RerunnerError,
    ScanError,
)
from rerunner.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "CommandError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "RerunnerError",
    "ScanError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
