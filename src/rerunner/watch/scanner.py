"""Polling change detection.

Design:
- os.walk from the root each cycle, pruning skipped directories in place
- Included files have their mtime recorded in ScanState
- A file signals change when it had an earlier recorded mtime AND its
  current mtime is after the last run (the watermark), so a change that
  already triggered a run cannot trigger again
- Creation and deletion are caught by comparing the included-file count
  against the previous cycle
- An unreadable directory is logged and skipped; the rest of the tree is
  still scanned and counted

Stale entries for deleted files stay in ScanState.mtimes. They are never
compared again and the count comparison does not read the mapping.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from rerunner.core.errors import ScanError
from rerunner.watch.rules import Entry, WatchRule, should_skip

logger = structlog.get_logger()


@dataclass
class ScanState:
    """Per-path mtimes plus the file count of the last cycle.

    ``unreadable`` holds the paths that failed last cycle, so a directory
    that stays unreadable is warned about once rather than every cycle.
    """

    mtimes: dict[str, float] = field(default_factory=dict)
    file_count: int = 0
    unreadable: set[str] = field(default_factory=set)


def _relative(root: Path, dirpath: str, name: str) -> str:
    rel = os.path.relpath(os.path.join(dirpath, name), root)
    return rel.replace(os.sep, "/")


def _report_unreadable(state: ScanState, failed: set[str], path: str, err: OSError) -> None:
    failed.add(path)
    error = ScanError.walk_failed(path, err.strerror or str(err))
    if path in state.unreadable:
        logger.debug("scan_path_unreadable", **error.details)
    else:
        logger.warning("scan_path_unreadable", **error.details)


def scan(root: Path, rule: WatchRule, state: ScanState, last_run: float) -> bool:
    """Walk the tree once and report whether anything relevant changed.

    Args:
        root: Directory to walk.
        rule: Skip/watch rules.
        state: Mutated in place with the mtimes observed this cycle.
        last_run: Watermark; modifications at or before it are already acted on.

    Returns:
        True if a watched file was modified, created or deleted.
    """
    changed = False
    count = 0
    failed: set[str] = set()

    def on_walk_error(err: OSError) -> None:
        _report_unreadable(state, failed, err.filename or str(root), err)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_walk_error):
        kept: list[str] = []
        for name in sorted(dirnames):
            rel = _relative(root, dirpath, name)
            if should_skip(rule, Entry(rel, is_dir=True)):
                logger.debug("dir_pruned", path=rel)
                continue
            kept.append(name)
        dirnames[:] = kept

        for name in sorted(filenames):
            rel = _relative(root, dirpath, name)
            if should_skip(rule, Entry(rel, is_dir=False)):
                continue

            path = os.path.join(dirpath, name)
            try:
                mtime = os.lstat(path).st_mtime
            except OSError as e:
                # Vanished since the listing, or not stat-able: not counted
                _report_unreadable(state, failed, path, e)
                continue
            count += 1

            previous = state.mtimes.get(rel)
            if not changed and previous is not None:
                changed = previous < mtime and last_run < mtime
                if changed:
                    logger.info("file_modified", path=rel)

            state.mtimes[rel] = mtime

    state.unreadable = failed

    if count != state.file_count:
        logger.info("file_count_changed", previous=state.file_count, current=count)
        changed = True

    state.file_count = count
    return changed
