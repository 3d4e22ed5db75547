"""Subprocess execution returning Result values.

Every external tool the release drives (rustup, cargo, npm, aws, pgrep)
goes through this module, so failures come back as ``ProcessError`` values
and tests replace a single module attribute.

    match run(["rustup", "target", "list", "--installed"], cwd=root):
        case Ok(stdout):
            installed = stdout.split()
        case Err(error):
            console.error(str(error))
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from deskrel.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run", "run_silent", "spawn_detached"]

# Return code used when the process never produced one (not found, timed out).
NO_EXIT = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not run or exited non-zero.

    ``returncode`` is ``NO_EXIT`` when the process never ran to completion;
    ``stderr`` then carries the OS or timeout message.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = " ".join(self.command[:3])
        if len(self.command) > 3:
            shown += " ..."
        return f"{shown} failed (exit {self.returncode})"


def _not_run(cmd: list[str], message: str, stdout: str = "") -> Err[ProcessError]:
    return Err(ProcessError(tuple(cmd), NO_EXIT, stdout, message))


def _execute(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None,
    timeout: float | None,
    *,
    capture: bool,
) -> Result[subprocess.CompletedProcess[str], ProcessError]:
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=capture,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return _not_run(cmd, f"Command timed out after {timeout}s", partial)
    except OSError as e:
        return _not_run(cmd, str(e))

    if proc.returncode != 0:
        return Err(
            ProcessError(tuple(cmd), proc.returncode, proc.stdout or "", proc.stderr or "")
        )
    return Ok(proc)


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run a command with captured output; Ok carries stdout."""
    match _execute(cmd, cwd, env, timeout, capture=True):
        case Ok(proc):
            return Ok(proc.stdout)
        case Err() as err:
            return err


def run_silent(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[None, ProcessError]:
    """Run a command whose output streams straight to the terminal.

    Used for compiler and packaging steps so the CI log shows them live.
    """
    match _execute(cmd, cwd, env, timeout, capture=False):
        case Ok():
            return Ok(None)
        case Err() as err:
            return err


def spawn_detached(cmd: list[str], cwd: Path) -> Result[int, ProcessError]:
    """Start a process in its own session and return its pid without waiting.

    Output is discarded; callers check liveness separately (``pgrep``).
    """
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        return _not_run(cmd, str(e))
    return Ok(proc.pid)
