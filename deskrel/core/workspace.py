"""Workspace paths.

The workspace is the checkout the release is built from. Every relative
path in ``deskrel.toml`` is resolved against its root.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILE_NAME, BundleConfig, PublishConfig

__all__ = ["Workspace", "detect_workspace"]


@dataclass(frozen=True, slots=True)
class Workspace:
    """A release workspace rooted at ``root``."""

    root: Path

    @property
    def config_path(self) -> Path:
        """Path to deskrel.toml."""
        return self.root / CONFIG_FILE_NAME

    @property
    def target_dir(self) -> Path:
        """Cargo target directory."""
        return self.root / "target"

    def resolve(self, relative: str) -> Path:
        """Resolve a config path (``~`` anchored or workspace relative)."""
        p = Path(relative).expanduser()
        if p.is_absolute():
            return p
        return self.root / p

    def cargo_output(self, target: str, bin_name: str) -> Path:
        return self.target_dir / target / "release" / bin_name

    def desktop_dir(self, bundle: BundleConfig) -> Path:
        return self.resolve(bundle.desktop_dir)

    def bundle_bin_dir(self, bundle: BundleConfig) -> Path:
        """Directory the packaging tool picks binaries up from."""
        return self.desktop_dir(bundle) / bundle.bin_dir

    def bundle_output_dir(self, bundle: BundleConfig) -> Path:
        return self.desktop_dir(bundle) / bundle.output_dir

    def artifacts_dir(self, publish: PublishConfig) -> Path:
        return self.resolve(publish.artifacts_dir)

    def __str__(self) -> str:
        return str(self.root)


def detect_workspace(
    *,
    start_dir: Path | None = None,
    env_var: str = "DESKREL_WORKSPACE",
) -> Workspace:
    """Pick the workspace root.

    Detection order:
    1. ``DESKREL_WORKSPACE`` environment variable (if it names a directory)
    2. First parent of start_dir (or cwd) holding a deskrel.toml
    3. start_dir (or cwd) itself
    """
    env_value = os.environ.get(env_var)
    if env_value:
        p = Path(env_value).expanduser().resolve()
        if p.is_dir():
            return Workspace(root=p)

    start = (start_dir or Path.cwd()).resolve()
    for parent in (start, *start.parents):
        if (parent / CONFIG_FILE_NAME).is_file():
            return Workspace(root=parent)
    return Workspace(root=start)
