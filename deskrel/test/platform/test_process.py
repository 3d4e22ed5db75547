"""Tests for deskrel.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from deskrel.core.result import Err, Ok
from deskrel.platform.process import ProcessError, run, run_silent, spawn_detached


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("npm", "run"), returncode=1, stdout="", stderr="")
        assert str(error) == "npm run failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("cargo", "build", "--release", "-p", "goose-server"),
            returncode=101,
            stdout="",
            stderr="",
        )
        assert str(error) == "cargo build --release ... failed (exit 101)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(42)"],
            cwd=tmp_path,
        )
        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert "bad" in result.error.stderr

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert result.error.stderr

    def test_timeout(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2
        )
        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr


class TestRunSilent:
    def test_success(self, tmp_path: Path) -> None:
        assert run_silent([sys.executable, "-c", "pass"], cwd=tmp_path) == Ok(None)

    def test_failure_keeps_returncode(self, tmp_path: Path) -> None:
        result = run_silent([sys.executable, "-c", "import sys; sys.exit(3)"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == 3


class TestSpawnDetached:
    def test_returns_pid(self, tmp_path: Path) -> None:
        result = spawn_detached([sys.executable, "-c", "pass"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert result.value > 0

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = spawn_detached([str(tmp_path / "nope")], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1
