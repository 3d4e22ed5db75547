"""Filesystem helpers for staging, patching and reclaiming release files."""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path

__all__ = ["atomic_write_text", "atomic_write_bytes", "remove_path", "copy_executable"]


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` in one rename.

    Readers see either the old file or the complete new one, never a partial
    write; the packaging config and the downloaded signed archive rely on it.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    atomic_write_bytes(path, content.encode(encoding))


def _remove_readonly(_func: Callable[[str], object], path: str, exc: BaseException) -> None:
    """Retry removal of read-only entries (cargo and npm caches contain some)."""
    if isinstance(exc, PermissionError):
        os.chmod(path, stat.S_IWRITE)
        os.unlink(path)
    else:
        raise exc


def remove_path(path: Path) -> bool:
    """Remove a file, symlink or directory tree.

    Returns False when nothing existed at ``path``.

    Raises:
        OSError: The entry exists but could not be removed.
    """
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path, onexc=_remove_readonly)
        return True
    return False


def copy_executable(src: Path, dest: Path) -> None:
    """Copy src to dest (replacing it) and keep it executable."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    if dest.exists() or dest.is_symlink():
        dest.unlink()
    shutil.copy2(src, dest)
    mode = dest.stat().st_mode
    dest.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
