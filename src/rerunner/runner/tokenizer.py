"""Shell-like splitting of pipeline command strings.

Grammar (best effort, malformed input degrades instead of failing):
- ``"..."`` is one token holding the text between the quotes. The closing
  quote is the first ``"`` not part of a ``\\"`` pair, or failing that the
  quote of the last such pair. An unterminated or empty quote is lexed as
  an ordinary bare token.
- A bare token is a run of characters that are neither ASCII whitespace nor
  backslash. It continues across an escaped space: one or more backslashes,
  a single whitespace character, then at least one bare character.
- A backslash that does not continue a bare token is dropped.

Each token is then unescaped by replacing ``\\ `` -> `` ``, ``\\"`` -> ``"``
and ``\\\\`` -> ``\\`` in that order. Unescaping backslashes first would turn
a literal ``\\\\"`` into an escaped quote.
"""

from __future__ import annotations

import json
from enum import Enum, auto

from rerunner.core.errors import CommandError

# NBSP and other Unicode spaces are ordinary token characters
_WHITESPACE = frozenset(" \t\n\f\r")

_UNESCAPES = (("\\ ", " "), ('\\"', '"'), ("\\\\", "\\"))


class _State(Enum):
    BETWEEN = auto()
    BARE = auto()
    QUOTED = auto()
    ESCAPE = auto()


def _closing_quote(raw: str, start: int) -> int | None:
    """Index of the quote closing a quoted token whose body starts at start.

    Without an unescaped closing quote, the quote of the last ``\\"`` pair
    closes the token instead, so ``"C:\\\\dir\\\\"`` ends at its final quote.
    """
    last_escaped = None
    i = start
    while i < len(raw):
        if raw[i] == "\\" and i + 1 < len(raw) and raw[i + 1] == '"':
            last_escaped = i + 1
            i += 2
        elif raw[i] == '"':
            return i
        else:
            i += 1
    return last_escaped


def _is_bare(ch: str) -> bool:
    return ch not in _WHITESPACE and ch != "\\"


def _escape_continues(raw: str, i: int) -> int | None:
    """If raw[i:] is backslashes + one whitespace + a bare char, return the
    index of that bare char."""
    j = i
    while j < len(raw) and raw[j] == "\\":
        j += 1
    if j == i or j + 1 >= len(raw):
        return None
    if raw[j] in _WHITESPACE and _is_bare(raw[j + 1]):
        return j + 1
    return None


def unescape(token: str) -> str:
    for escaped, plain in _UNESCAPES:
        token = token.replace(escaped, plain)
    return token


def split(raw: str) -> list[str]:
    """Split raw into escaped tokens (no unescaping)."""
    tokens: list[str] = []
    state = _State.BETWEEN
    start = 0
    i = 0

    while i < len(raw):
        ch = raw[i]

        if state is _State.BETWEEN:
            if ch in _WHITESPACE or ch == "\\":
                i += 1
                continue
            if ch == '"':
                end = _closing_quote(raw, i + 1)
                if end is not None and end > i + 1:
                    state = _State.QUOTED
                    start = i + 1
                    i = end
                    continue
            state = _State.BARE
            start = i
            i += 1

        elif state is _State.QUOTED:
            # i sits on the closing quote
            tokens.append(raw[start:i])
            state = _State.BETWEEN
            i += 1

        elif state is _State.BARE:
            if _is_bare(ch):
                i += 1
            elif ch == "\\":
                state = _State.ESCAPE
            else:
                tokens.append(raw[start:i])
                state = _State.BETWEEN

        else:  # ESCAPE
            resume = _escape_continues(raw, i)
            if resume is None:
                tokens.append(raw[start:i])
                state = _State.BETWEEN
            else:
                state = _State.BARE
                i = resume

    if state is _State.BARE:
        tokens.append(raw[start:])
    return tokens


def tokenize(raw: str) -> list[str]:
    """Split a command string into program + arguments.

    Raises:
        CommandError: If the string holds no token at all.
    """
    tokens = [unescape(token) for token in split(raw)]
    if not tokens:
        raise CommandError.empty(raw)
    return tokens


def format_command(argv: list[str]) -> str:
    """Render argv for display, quoting arguments that contain whitespace."""
    parts = [argv[0]]
    for arg in argv[1:]:
        if any(ch.isspace() for ch in arg):
            parts.append(json.dumps(arg, ensure_ascii=False))
        else:
            parts.append(arg)
    return " ".join(parts)
