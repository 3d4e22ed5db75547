"""Error values returned by the release stages.

Each stage returns ``Err`` with one of these; ``deskrel.output.errors``
turns them into console lines and exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

# -----------------------------------------------------------------------------
# Build
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ToolMissing:
    tool_id: str
    hint: str


@dataclass(frozen=True, slots=True)
class TargetInstallFailed:
    target: str
    detail: str


@dataclass(frozen=True, slots=True)
class CompileFailed:
    component: str
    returncode: int


@dataclass(frozen=True, slots=True)
class OutputMissing:
    path: Path


BuildError = ToolMissing | TargetInstallFailed | CompileFailed | OutputMissing


# -----------------------------------------------------------------------------
# Bundle
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ResourceMissing:
    name: str
    path: Path


@dataclass(frozen=True, slots=True)
class BundleConfigInvalid:
    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class BundleFailed:
    attempts: int
    returncode: int


@dataclass(frozen=True, slots=True)
class StagingFailed:
    path: Path
    detail: str


BundleError = (
    ResourceMissing | StagingFailed | BundleConfigInvalid | BundleFailed | OutputMissing
)


# -----------------------------------------------------------------------------
# Signing
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StoreFailed:
    operation: str
    location: str
    detail: str


@dataclass(frozen=True, slots=True)
class SigningSubmitFailed:
    status_code: int
    detail: str


@dataclass(frozen=True, slots=True)
class SigningPollFailed:
    job_id: str
    status_code: int
    detail: str


@dataclass(frozen=True, slots=True)
class SigningJobFailed:
    """The service answered normally but reported the job as failed."""

    job_id: str
    state: str


@dataclass(frozen=True, slots=True)
class SigningTimeout:
    """The service stayed reachable but did not finish before the deadline."""

    job_id: str
    elapsed: float
    deadline: float


SigningError = (
    StoreFailed
    | SigningSubmitFailed
    | SigningPollFailed
    | SigningJobFailed
    | SigningTimeout
    | OutputMissing
)


# -----------------------------------------------------------------------------
# Publish
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PublishFailed:
    path: Path
    detail: str


@dataclass(frozen=True, slots=True)
class SmokeTestFailed:
    app: Path
    reason: str


PublishError = PublishFailed | SmokeTestFailed


PipelineError = BuildError | BundleError | SigningError | PublishError
