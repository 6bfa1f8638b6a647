"""Config module exports."""

from rerunner.config.loader import load_config
from rerunner.config.models import (
    LoggingConfig,
    RerunnerConfig,
    RunConfig,
    WatchConfig,
)

__all__ = [
    "load_config",
    "RerunnerConfig",
    "LoggingConfig",
    "RunConfig",
    "WatchConfig",
]
