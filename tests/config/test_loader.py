"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence: defaults < global < tree < env < kwargs
- Error mapping to ConfigError
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from rerunner.config import loader
from rerunner.config.constants import CONFIG_FILE_NAME
from rerunner.config.loader import _deep_merge, _load_yaml, load_config
from rerunner.core.errors import ConfigError, ErrorCode


def _write_tree_config(root: Path, text: str) -> None:
    (root / CONFIG_FILE_NAME).write_text(text)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("watch:\n  interval_sec: 1\n")

        assert _load_yaml(yaml_file) == {"watch": {"interval_sec": 1}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("watch:\n  patterns:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_for_non_mapping_top_level(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert "mapping" in exc_info.value.message


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        base = {"watch": {"interval_sec": 2, "skip_dot_dirs": True}}
        override = {"watch": {"interval_sec": 1}}

        assert _deep_merge(base, override) == {
            "watch": {"interval_sec": 1, "skip_dot_dirs": True}
        }

    def test_override_replaces_non_dict(self) -> None:
        base: dict[str, Any] = {"a": {"nested": 1}}
        assert _deep_merge(base, {"a": "simple"}) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults_when_no_files(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert config.logging.level == "WARNING"
        assert config.watch.interval_sec == 2.0
        assert config.watch.skip_patterns == ["node_modules/*"]
        assert config.run.sigterm is False

    def test_loads_tree_config(self, tmp_path: Path) -> None:
        _write_tree_config(tmp_path, "watch:\n  interval_sec: 500ms\n  skip_dot_files: true\n")

        config = load_config(tmp_path)

        assert config.watch.interval_sec == 0.5
        assert config.watch.skip_dot_files is True

    def test_tree_config_overrides_global(self, tmp_path: Path) -> None:
        loader.GLOBAL_CONFIG_PATH.write_text("run:\n  verbose: true\n  sigterm: true\n")
        _write_tree_config(tmp_path, "run:\n  sigterm: false\n")

        config = load_config(tmp_path)

        assert config.run.verbose is True
        assert config.run.sigterm is False

    def test_env_vars_override_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_tree_config(tmp_path, "logging:\n  level: INFO\n")
        monkeypatch.setenv("RERUNNER__LOGGING__LEVEL", "ERROR")

        assert load_config(tmp_path).logging.level == "ERROR"

    def test_env_pattern_lists_are_space_separated(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RERUNNER__WATCH__SKIP_PATTERNS", "build/* dist/*")

        config = load_config(tmp_path)

        assert config.watch.skip_patterns == ["build/*", "dist/*"]

    def test_kwargs_override_all(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_tree_config(tmp_path, "watch:\n  interval_sec: 3\n")
        monkeypatch.setenv("RERUNNER__WATCH__INTERVAL_SEC", "4")

        config = load_config(tmp_path, watch={"interval_sec": 0.25})

        assert config.watch.interval_sec == 0.25

    def test_kwargs_merge_field_by_field(self, tmp_path: Path) -> None:
        _write_tree_config(tmp_path, "watch:\n  skip_dot_files: true\n")

        config = load_config(tmp_path, watch={"extensions": "+ .tmpl"})

        assert config.watch.skip_dot_files is True
        assert ".tmpl" in config.watch.extension_set
        assert ".go" in config.watch.extension_set

    def test_invalid_value_raises_config_error(self, tmp_path: Path) -> None:
        _write_tree_config(tmp_path, "watch:\n  interval_sec: soon\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "interval_sec" in exc_info.value.details["field"]

    def test_invalid_kwarg_raises_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(tmp_path, run={"teardown_timeout_sec": "-1s"})

    def test_bad_yaml_raises_parse_error(self, tmp_path: Path) -> None:
        _write_tree_config(tmp_path, "watch: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)

        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_lives_under_user_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.undo()
        assert loader.GLOBAL_CONFIG_PATH.parts[-2:] == ("rerunner", "config.yaml")
