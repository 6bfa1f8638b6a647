"""Tests for runner/loop.py."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from rerunner.runner.loop import WatchLoop
from rerunner.runner.supervisor import RunResult
from rerunner.watch.rules import WatchRule

BASE_TIME = 1_700_000_000.0


@dataclass
class FakeSupervisor:
    last_run: float = 0.0
    runs: list[list[str]] = field(default_factory=list)
    next_watermark: float = BASE_TIME + 10

    def run(self, commands: list[str]) -> RunResult:
        self.runs.append(list(commands))
        self.last_run = self.next_watermark
        return RunResult(started=[c.split() for c in commands], completed=True)


class StopLoop(Exception):
    pass


def _stop_after(cycles: int):  # type: ignore[no-untyped-def]
    sleeps: list[float] = []

    def sleep(seconds: float) -> None:
        sleeps.append(seconds)
        if len(sleeps) >= cycles:
            raise StopLoop

    return sleep, sleeps


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "src"
    root.mkdir()
    (root / "main.go").write_text("package main\n")
    os.utime(root / "main.go", (BASE_TIME, BASE_TIME))
    return root


def _loop(tree: Path, supervisor: FakeSupervisor, **kwargs: object) -> WatchLoop:
    rule = WatchRule(extensions=frozenset({".go"}))
    return WatchLoop(tree, rule, supervisor, ["go build", "./app"], **kwargs)  # type: ignore[arg-type]


class TestStep:
    """Single cycles."""

    def test_first_cycle_runs_pipeline(self, tree: Path) -> None:
        supervisor = FakeSupervisor()
        loop = _loop(tree, supervisor)

        result = loop.step()

        assert result is not None
        assert supervisor.runs == [["go build", "./app"]]
        assert loop.cycles == 1

    def test_quiet_cycle_does_not_run(self, tree: Path) -> None:
        supervisor = FakeSupervisor()
        loop = _loop(tree, supervisor)
        loop.step()

        assert loop.step() is None
        assert len(supervisor.runs) == 1

    def test_change_after_run_triggers_again(self, tree: Path) -> None:
        supervisor = FakeSupervisor()
        loop = _loop(tree, supervisor)
        loop.step()

        os.utime(tree / "main.go", (BASE_TIME + 20, BASE_TIME + 20))

        assert loop.step() is not None
        assert len(supervisor.runs) == 2


class TestRunForever:
    """The unbounded loop."""

    def test_sleeps_interval_between_cycles(self, tree: Path) -> None:
        sleep, sleeps = _stop_after(3)
        supervisor = FakeSupervisor()
        loop = _loop(tree, supervisor, interval=0.25, sleep=sleep)

        with pytest.raises(StopLoop):
            loop.run_forever()

        assert sleeps == [0.25, 0.25, 0.25]
        assert loop.cycles == 3
        assert len(supervisor.runs) == 1

    def test_unexpected_error_keeps_looping(
        self, tree: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        sleep, sleeps = _stop_after(2)
        loop = _loop(tree, FakeSupervisor(), sleep=sleep)

        def broken_scan(*args: object) -> bool:
            raise RuntimeError("disk on fire")

        monkeypatch.setattr("rerunner.runner.loop.scan", broken_scan)

        with capture_logs() as logs, pytest.raises(StopLoop):
            loop.run_forever()

        failures = [log for log in logs if log["event"] == "cycle_failed"]
        assert len(failures) == 2
        assert failures[0]["message"] == "Internal error: disk on fire"
        assert len(sleeps) == 2
