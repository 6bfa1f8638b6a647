"""Skip/watch predicate for the polling scanner.

The predicate is an ordered tuple of named filter stages. Each stage looks at
one entry and answers INCLUDE, EXCLUDE or UNDECIDED; the first decisive
answer wins and an entry no stage decides on is included.

Stage order:
- root: the traversal root itself is never a watched path
- dot: dot directories / dot files, per the skip_dot_* flags
- skip_glob: forward-slash path matches a skip pattern
- extension: files without a watched extension (directories pass)
- watch_glob: forward-slash path matches a watch pattern

watch_glob runs last, so a watch pattern can never re-include an entry that
an earlier stage excluded. In particular ``--patterns Makefile`` does not
make an extension-less Makefile visible.

Globs are matched per path segment: ``*`` and ``?`` never cross ``/`` and
a pattern only matches paths with the same number of segments. ``node_modules/*`` therefore matches
``node_modules/react`` but not ``node_modules`` or
``node_modules/react/index.js``. Classes negate with ``[^...]`` (``[!...]``
is a class holding ``!``). Inside a class ``-`` and ``]`` must be escaped.
Outside one, ``\\c`` matches ``c`` literally.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

import structlog

from rerunner.core.errors import ScanError

if TYPE_CHECKING:
    from rerunner.config.models import WatchConfig

logger = structlog.get_logger()

ROOT_PATH = "."


class Verdict(Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"
    UNDECIDED = "undecided"


class Entry(NamedTuple):
    """A walked path relative to the root, in forward-slash form."""

    path: str
    is_dir: bool

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class WatchRule:
    """Resolved inclusion rules. Immutable for the life of the process."""

    extensions: frozenset[str]
    watch_patterns: tuple[str, ...] = ()
    skip_patterns: tuple[str, ...] = ()
    skip_dot_dirs: bool = True
    skip_dot_files: bool = False

    @classmethod
    def from_config(cls, config: WatchConfig) -> WatchRule:
        return cls(
            extensions=config.extension_set,
            watch_patterns=tuple(config.patterns),
            skip_patterns=tuple(config.skip_patterns),
            skip_dot_dirs=config.skip_dot_dirs,
            skip_dot_files=config.skip_dot_files,
        )


def extension_of(name: str) -> str:
    """Return the suffix from the last dot of a base name, dot included.

    Unlike os.path.splitext, a leading dot counts: ``.bashrc`` -> ``.bashrc``.
    """
    idx = name.rfind(".")
    return name[idx:] if idx >= 0 else ""


def _class_char(pattern: str, i: int) -> tuple[str, int]:
    """One (possibly escaped) character of a class body; returns it and the next index."""
    if i >= len(pattern):
        raise ScanError.bad_pattern(pattern, "unterminated character class")
    ch = pattern[i]
    if ch in "-]":
        raise ScanError.bad_pattern(pattern, f"unescaped {ch!r} in character class")
    if ch == "\\":
        i += 1
        if i >= len(pattern):
            raise ScanError.bad_pattern(pattern, "unterminated character class")
        ch = pattern[i]
    return ch, i + 1


def _translate_class(pattern: str, i: int) -> tuple[str, int]:
    """Translate a class body starting after ``[``; returns regex and next index."""
    negate = i < len(pattern) and pattern[i] == "^"
    if negate:
        i += 1

    ranges: list[tuple[str, str]] = []
    while not (ranges and i < len(pattern) and pattern[i] == "]"):
        lo, i = _class_char(pattern, i)
        hi = lo
        if i < len(pattern) and pattern[i] == "-":
            hi, i = _class_char(pattern, i + 1)
        ranges.append((lo, hi))

    # A reversed range matches nothing
    body = "".join(
        re.escape(lo) if lo == hi else f"{re.escape(lo)}-{re.escape(hi)}"
        for lo, hi in ranges
        if lo <= hi
    )
    if not body:
        return ("." if negate else "(?!)"), i + 1
    return f"[{'^' if negate else ''}{body}]", i + 1


def _translate(pattern: str, segment: str) -> str:
    """Translate one pattern segment into a regex."""
    out: list[str] = []
    i = 0
    while i < len(segment):
        ch = segment[i]
        if ch == "*":
            out.append(".*")
        elif ch == "?":
            out.append(".")
        elif ch == "[":
            regex, i = _translate_class(segment, i + 1)
            out.append(regex)
            continue
        elif ch == "\\":
            i += 1
            if i >= len(segment):
                raise ScanError.bad_pattern(pattern, "trailing backslash")
            out.append(re.escape(segment[i]))
        else:
            out.append(re.escape(ch))
        i += 1
    return "".join(out)


@functools.lru_cache(maxsize=256)
def _compile(pattern: str) -> tuple[re.Pattern[str], ...]:
    try:
        return tuple(
            re.compile(_translate(pattern, segment), re.DOTALL) for segment in pattern.split("/")
        )
    except ScanError as e:
        # Report the whole pattern, not the segment being translated
        raise ScanError.bad_pattern(pattern, e.details["reason"]) from None


def match_path(pattern: str, path: str) -> bool:
    """Segment-wise glob match of a forward-slash path.

    Raises:
        ScanError: If the pattern is malformed.
    """
    segments = _compile(pattern)
    parts = path.split("/")
    if len(segments) != len(parts):
        return False
    return all(regex.fullmatch(part) for regex, part in zip(segments, parts, strict=True))


def _any_match(patterns: tuple[str, ...], path: str, kind: str) -> bool:
    for pattern in patterns:
        try:
            if match_path(pattern, path):
                return True
        except ScanError as e:
            logger.warning("bad_glob_pattern", kind=kind, **e.details)
    return False


def _root_stage(rule: WatchRule, entry: Entry) -> Verdict:  # noqa: ARG001
    return Verdict.EXCLUDE if entry.path == ROOT_PATH else Verdict.UNDECIDED


def _dot_stage(rule: WatchRule, entry: Entry) -> Verdict:
    if not entry.name.startswith("."):
        return Verdict.UNDECIDED
    skip = rule.skip_dot_dirs if entry.is_dir else rule.skip_dot_files
    return Verdict.EXCLUDE if skip else Verdict.UNDECIDED


def _skip_glob_stage(rule: WatchRule, entry: Entry) -> Verdict:
    if _any_match(rule.skip_patterns, entry.path, "skip"):
        return Verdict.EXCLUDE
    return Verdict.UNDECIDED


def _extension_stage(rule: WatchRule, entry: Entry) -> Verdict:
    if entry.is_dir or extension_of(entry.name) in rule.extensions:
        return Verdict.UNDECIDED
    return Verdict.EXCLUDE


def _watch_glob_stage(rule: WatchRule, entry: Entry) -> Verdict:
    if _any_match(rule.watch_patterns, entry.path, "watch"):
        return Verdict.INCLUDE
    return Verdict.UNDECIDED


class FilterStage(NamedTuple):
    name: str
    check: Callable[[WatchRule, Entry], Verdict]


FILTER_STAGES: tuple[FilterStage, ...] = (
    FilterStage("root", _root_stage),
    FilterStage("dot", _dot_stage),
    FilterStage("skip_glob", _skip_glob_stage),
    FilterStage("extension", _extension_stage),
    FilterStage("watch_glob", _watch_glob_stage),
)


def evaluate(rule: WatchRule, entry: Entry) -> tuple[Verdict, str | None]:
    """Run the stages in order. Returns the verdict and the deciding stage."""
    for stage in FILTER_STAGES:
        verdict = stage.check(rule, entry)
        if verdict is not Verdict.UNDECIDED:
            return verdict, stage.name
    return Verdict.INCLUDE, None


def should_skip(rule: WatchRule, entry: Entry) -> bool:
    verdict, _ = evaluate(rule, entry)
    return verdict is Verdict.EXCLUDE
