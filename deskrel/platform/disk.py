"""Disk space reporting (the ``df -h`` of the release log)."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

__all__ = ["DiskUsage", "disk_usage", "format_bytes"]


@dataclass(frozen=True, slots=True)
class DiskUsage:
    total: int
    used: int
    free: int

    def __str__(self) -> str:
        return f"{format_bytes(self.free)} free of {format_bytes(self.total)}"


def disk_usage(path: Path) -> DiskUsage | None:
    """Usage of the filesystem holding path, or None if it cannot be read.

    Walks up to the nearest existing parent so a path that was just
    reclaimed can still be measured.
    """
    for candidate in (path, *path.parents):
        try:
            u = shutil.disk_usage(candidate) if candidate.exists() else None
        except OSError:
            continue
        if u is not None:
            return DiskUsage(total=u.total, used=u.used, free=u.free)
    return None


def format_bytes(n: int) -> str:
    value = float(n)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if abs(value) < 1024 or unit == "TiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{n} B"
