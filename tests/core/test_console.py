"""Tests for core/console.py module.

Covers:
- status() function
- pluralize() function
"""

from __future__ import annotations

from unittest.mock import patch

from rerunner.core.console import _STYLES, get_console, pluralize, status


class TestStyles:
    """Tests for style prefixes."""

    def test_has_expected_styles(self) -> None:
        for style in ("success", "error", "warning", "command", "info", "none"):
            assert style in _STYLES

    def test_error_style(self) -> None:
        assert "✗" in _STYLES["error"]


class TestStatus:
    """Tests for status function."""

    def test_prints_message_verbatim(self) -> None:
        """Brackets in a command line are not treated as Rich markup."""
        with patch("rerunner.core.console._console") as mock_console:
            status("echo [red]x[/red]", style="command")

        message_call = mock_console.print.call_args_list[-1]
        assert message_call.args == ("echo [red]x[/red]",)
        assert message_call.kwargs["markup"] is False

    def test_error_prefix(self) -> None:
        with patch("rerunner.core.console._console") as mock_console:
            status("build failed", style="error")

        prefix_call = mock_console.print.call_args_list[0]
        assert "✗" in prefix_call.args[0]

    def test_with_indent(self) -> None:
        with patch("rerunner.core.console._console") as mock_console:
            status("nested", style="none", indent=4)

        assert mock_console.print.call_args_list[0].args[0] == "    "

    def test_console_writes_to_stderr(self) -> None:
        assert get_console().stderr is True


class TestPluralize:
    """Tests for pluralize function."""

    def test_singular_count_one(self) -> None:
        assert pluralize(1, "command") == "1 command"

    def test_plural_count_zero(self) -> None:
        assert pluralize(0, "file") == "0 files"

    def test_custom_plural(self) -> None:
        assert pluralize(2, "match", "matches") == "2 matches"
