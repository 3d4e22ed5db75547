"""Host detection: operating system and CPU architecture.

Architectures use the packaging tool's names (``x64``, ``arm64``) so they
compare directly against the bundle arch.
"""

from __future__ import annotations

import platform as _platform
import sys as _sys
from enum import StrEnum
from functools import lru_cache

__all__ = ["Platform", "detect_platform", "host_arch", "is_macos"]


class Platform(StrEnum):
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


_SYS_PLATFORMS: dict[str, Platform] = {
    "darwin": Platform.MACOS,
    "win32": Platform.WINDOWS,
    "cygwin": Platform.WINDOWS,
}

_MACHINE_ARCHS: dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


@lru_cache(maxsize=1)
def detect_platform() -> Platform:
    if _sys.platform.startswith("linux"):
        return Platform.LINUX
    return _SYS_PLATFORMS.get(_sys.platform, Platform.UNKNOWN)


def host_arch() -> str:
    """Machine architecture in packaging terms; unknown machines pass through lowercased."""
    machine = _platform.machine().lower()
    return _MACHINE_ARCHS.get(machine, machine or "unknown")


def is_macos() -> bool:
    return detect_platform() is Platform.MACOS
