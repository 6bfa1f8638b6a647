"""Polling change detection."""

from rerunner.watch.rules import (
    FILTER_STAGES,
    Entry,
    FilterStage,
    Verdict,
    WatchRule,
    evaluate,
    match_path,
    should_skip,
)
from rerunner.watch.scanner import ScanState, scan

__all__ = [
    "FILTER_STAGES",
    "Entry",
    "FilterStage",
    "ScanState",
    "Verdict",
    "WatchRule",
    "evaluate",
    "match_path",
    "scan",
    "should_skip",
]
