"""Publisher and launch smoke test.

``publish`` stores the final archive in the artifacts directory (plus a
sha256 sidecar). ``smoke_test`` launches the app non-interactively, waits a
short grace period and checks the app process is still alive. The smoke
test is the only check that the bundle actually starts.
"""

from __future__ import annotations

import hashlib
import shutil
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from deskrel.core.config import PublishConfig
from deskrel.core.result import Err, Ok, Result
from deskrel.core.workspace import Workspace
from deskrel.output.console import ConsoleProtocol, Style
from deskrel.platform.detection import is_macos
from deskrel.platform.process import ProcessError, spawn_detached
from deskrel.platform.process import run as run_process

from .errors import PublishFailed, SmokeTestFailed
from .timeouts import PROCESS_CONTROL_TIMEOUT_SECONDS, TERMINATE_SETTLE_SECONDS


class ProcessControl(Protocol):
    """Launch an app in the background and find it again by command-line match."""

    def launch(self, app_path: Path) -> Result[None, ProcessError]: ...

    def is_running(self, pattern: str) -> bool: ...

    def terminate(self, pattern: str, *, force: bool = False) -> bool: ...


class SystemProcessControl:
    """``open -g`` on macOS, a detached process elsewhere; ``pgrep``/``pkill -f``."""

    def __init__(self, *, cwd: Path) -> None:
        self._cwd = cwd

    def launch(self, app_path: Path) -> Result[None, ProcessError]:
        if is_macos() and app_path.suffix == ".app":
            # Downloaded bundles carry quarantine attributes; clearing is best-effort.
            run_process(
                ["xattr", "-cr", str(app_path)],
                cwd=self._cwd,
                timeout=PROCESS_CONTROL_TIMEOUT_SECONDS,
            )
            opened = run_process(
                ["open", "-g", str(app_path)],
                cwd=self._cwd,
                timeout=PROCESS_CONTROL_TIMEOUT_SECONDS,
            )
            if isinstance(opened, Err):
                return opened
            return Ok(None)

        spawned = spawn_detached([str(app_executable(app_path))], cwd=self._cwd)
        if isinstance(spawned, Err):
            return spawned
        return Ok(None)

    def is_running(self, pattern: str) -> bool:
        found = run_process(
            ["pgrep", "-f", pattern],
            cwd=self._cwd,
            timeout=PROCESS_CONTROL_TIMEOUT_SECONDS,
        )
        return isinstance(found, Ok)

    def terminate(self, pattern: str, *, force: bool = False) -> bool:
        signal = ["-9"] if force else []
        killed = run_process(
            ["pkill", *signal, "-f", pattern],
            cwd=self._cwd,
            timeout=PROCESS_CONTROL_TIMEOUT_SECONDS,
        )
        return isinstance(killed, Ok)


def app_executable(app_path: Path) -> Path:
    """Main executable of a ``.app`` bundle, or the path itself."""
    if app_path.suffix == ".app" and app_path.is_dir():
        return app_path / "Contents" / "MacOS" / app_path.stem
    return app_path


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


class Publisher:
    def __init__(
        self,
        *,
        workspace: Workspace,
        publish: PublishConfig,
        console: ConsoleProtocol,
        process_control: ProcessControl,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._workspace = workspace
        self._publish = publish
        self._console = console
        self._process = process_control
        self._sleep = sleep

    def publish(self, archive: Path) -> Result[Path, PublishFailed]:
        """Copy the archive to ``<artifacts_dir>/<artifact_name>/`` with a .sha256 file."""
        if not archive.is_file():
            return Err(PublishFailed(path=archive, detail="artifact not found"))

        dest_dir = self._workspace.artifacts_dir(self._publish) / self._publish.artifact_name
        dest = dest_dir / archive.name
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(archive, dest)
            digest = _sha256_file(dest)
            (dest_dir / f"{archive.name}.sha256").write_text(
                f"{digest}  {archive.name}\n", encoding="utf-8"
            )
        except OSError as e:
            return Err(PublishFailed(path=dest, detail=str(e)))

        self._console.print(f"sha256 {digest}", Style.DIM)
        return Ok(dest)

    def smoke_test(self, app_path: Path) -> Result[None, SmokeTestFailed]:
        """Launch, wait ``grace`` seconds, require the process alive, then stop it.

        The app is stopped in every outcome; a process that survives ``pkill -9``
        fails the smoke test.
        """
        pattern = self._publish.process_pattern
        if not app_path.exists():
            return Err(SmokeTestFailed(app=app_path, reason="app not found"))

        self._console.print(f"opening {app_path.name}...")
        launched = self._process.launch(app_path)
        if isinstance(launched, Err):
            self._stop(pattern)
            return Err(SmokeTestFailed(app=app_path, reason=f"launch failed: {launched.error}"))

        self._sleep(self._publish.grace)
        alive = self._process.is_running(pattern)
        stopped = self._stop(pattern)

        if not alive:
            return Err(
                SmokeTestFailed(
                    app=app_path,
                    reason="app did not stay open (possible crash or startup error)",
                )
            )
        if not stopped:
            return Err(
                SmokeTestFailed(app=app_path, reason=f"process still running after kill: {pattern}")
            )

        self._console.print("app appears to be running", Style.DIM)
        return Ok(None)

    def _stop(self, pattern: str) -> bool:
        """Terminate, then kill; True once nothing matches ``pattern``."""
        for force in (False, True):
            self._process.terminate(pattern, force=force)
            if not self._process.is_running(pattern):
                return True
            self._sleep(TERMINATE_SETTLE_SECONDS)
            if not self._process.is_running(pattern):
                return True
            if not force:
                self._console.warning(f"process still running after terminate: {pattern}")
        return False
