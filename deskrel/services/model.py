from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class BinaryOutput:
    """One built executable, named as the bundle expects it."""

    name: str
    path: Path


@dataclass(frozen=True, slots=True)
class UnsignedArtifact:
    """The assembled archive.

    ``location`` is set once the archive has been uploaded for signing.
    """

    path: Path
    app_path: Path
    location: str | None = None


@dataclass(frozen=True, slots=True)
class SignedArtifact:
    """Signed archive: downloaded from ``location`` over the local ``path``."""

    path: Path
    app_path: Path
    location: str
    job_id: str
