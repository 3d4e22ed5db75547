"""Platform abstraction layer."""

from .detection import Platform, detect_platform, host_arch, is_macos
from .disk import DiskUsage, disk_usage, format_bytes
from .process import ProcessError, run, run_silent, spawn_detached

__all__ = [
    # detection
    "Platform",
    "detect_platform",
    "host_arch",
    "is_macos",
    # disk
    "DiskUsage",
    "disk_usage",
    "format_bytes",
    # process
    "ProcessError",
    "run",
    "run_silent",
    "spawn_detached",
]
