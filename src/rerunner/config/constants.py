"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are CLI conventions, file names and terminal protocol details.

For configurable values, see models.py (WatchConfig, RunConfig, etc.).
"""

# =============================================================================
# Watch Defaults
# =============================================================================

DEFAULT_EXTENSIONS = ".asm .c .cc .cpp .csv .go .h .hh .hpp .json .rs .s .sql .v .vhdl .zig"
"""Space separated extensions watched when none are configured."""

DEFAULTS_PREFIX = "+ "
"""An extensions value starting with this appends to DEFAULT_EXTENSIONS."""

DEFAULT_SKIP_PATTERNS = ("node_modules/*",)
"""Skip globs applied when none are configured."""

DEFAULT_INTERVAL_SEC = 2.0
"""Seconds between scan cycles."""

# =============================================================================
# Command Shorthands
# =============================================================================

MAKE_PREFIX = "make:"
"""``make:a,b`` expands to ``make a`` and ``make b``."""

# =============================================================================
# Files and Terminal
# =============================================================================

CONFIG_FILE_NAME = ".rerunner.yaml"
"""Per-tree config file, looked up in the watched root."""

TERMINAL_RESET = "\033c"
"""Full terminal reset (RIS) written when clearing without a clear command."""
