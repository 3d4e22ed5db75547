"""Disk space guard.

Build hosts run out of space between the Rust build and the Electron
bundle. ``DiskGuard.reclaim`` removes caches and build byproducts that
later stages do not need. It is best-effort: absent targets are skipped,
failures are reported as warnings and never abort the release.
"""

from __future__ import annotations

import glob
import shutil
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from deskrel.core.config import CleanupConfig, CleanupScope
from deskrel.core.result import Err
from deskrel.core.workspace import Workspace
from deskrel.output.console import ConsoleProtocol, Style
from deskrel.platform.disk import DiskUsage, disk_usage, format_bytes
from deskrel.platform.files import remove_path
from deskrel.platform.process import run as run_process

from .timeouts import CLEANUP_COMMAND_TIMEOUT_SECONDS


class Scope(StrEnum):
    PRE_BUILD = "pre_build"
    POST_BUILD = "post_build"
    FINAL = "final"


@dataclass(frozen=True, slots=True)
class ReclaimReport:
    scope: Scope
    removed: tuple[Path, ...]
    skipped: tuple[str, ...]
    failures: tuple[str, ...]
    before: DiskUsage | None
    after: DiskUsage | None

    @property
    def freed(self) -> int | None:
        if self.before is None or self.after is None:
            return None
        return max(0, self.after.free - self.before.free)


class DiskGuard:
    def __init__(
        self,
        *,
        workspace: Workspace,
        cleanup: CleanupConfig,
        target: str,
        console: ConsoleProtocol,
    ) -> None:
        self._workspace = workspace
        self._cleanup = cleanup
        self._target = target
        self._console = console

    def scope_config(self, scope: Scope) -> CleanupScope:
        match scope:
            case Scope.PRE_BUILD:
                return self._cleanup.pre_build
            case Scope.POST_BUILD:
                return self._cleanup.post_build
            case Scope.FINAL:
                return self._cleanup.final

    def report_usage(self, label: str) -> DiskUsage | None:
        usage = disk_usage(self._workspace.root)
        if usage is None:
            self._console.print(f"disk ({label}): unavailable", Style.DIM)
        else:
            self._console.print(f"disk ({label}): {usage}", Style.DIM)
        return usage

    def reclaim(self, scope: Scope) -> ReclaimReport:
        """Remove the targets of ``scope``. Never raises, never fails."""
        cfg = self.scope_config(scope)
        before = disk_usage(self._workspace.root)

        failures: list[str] = []
        skipped: list[str] = []
        removed: list[Path] = []

        for cmd in cfg.commands:
            self._run_command(list(cmd), skipped=skipped, failures=failures)

        for pattern in cfg.paths:
            try:
                matches = self._expand(pattern)
            except OSError as e:
                failures.append(f"{pattern}: {e}")
                continue
            if not matches:
                skipped.append(pattern)
                continue
            for path in matches:
                try:
                    if remove_path(path):
                        removed.append(path)
                except OSError as e:
                    failures.append(f"{path}: {e}")

        for failure in failures:
            self._console.warning(f"reclaim: {failure}")

        after = self.report_usage(f"after {scope}")
        report = ReclaimReport(
            scope=scope,
            removed=tuple(removed),
            skipped=tuple(skipped),
            failures=tuple(failures),
            before=before,
            after=after,
        )
        freed = report.freed
        summary = f"reclaim {scope}: removed {len(removed)} path(s)"
        if freed is not None:
            summary += f", freed {format_bytes(freed)}"
        self._console.print(summary, Style.INFO)
        return report

    def _expand(self, pattern: str) -> list[Path]:
        """Paths matching ``pattern``; raises OSError when a path cannot be inspected."""
        resolved = self._workspace.resolve(pattern.replace("{target}", self._target))
        if any(ch in pattern for ch in "*?["):
            return [Path(p) for p in sorted(glob.glob(str(resolved)))]
        if resolved.exists() or resolved.is_symlink():
            return [resolved]
        return []

    def _run_command(self, cmd: list[str], *, skipped: list[str], failures: list[str]) -> None:
        if not cmd:
            return
        if shutil.which(cmd[0]) is None:
            skipped.append(" ".join(cmd))
            return

        self._console.command(cmd)
        result = run_process(cmd, cwd=self._workspace.root, timeout=CLEANUP_COMMAND_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            failures.append(str(result.error))
