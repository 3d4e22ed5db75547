"""Error presentation utilities.

One console line (plus an optional dim hint) and one exit code per error kind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from deskrel.core.errors import ErrorCode
from deskrel.output.console import Style
from deskrel.services.errors import (
    BundleConfigInvalid,
    BundleFailed,
    CompileFailed,
    OutputMissing,
    PipelineError,
    PublishFailed,
    ResourceMissing,
    SigningJobFailed,
    SigningPollFailed,
    SigningSubmitFailed,
    SigningTimeout,
    SmokeTestFailed,
    StagingFailed,
    StoreFailed,
    TargetInstallFailed,
    ToolMissing,
)

if TYPE_CHECKING:
    from deskrel.output.console import ConsoleProtocol

__all__ = ["print_pipeline_error", "pipeline_error_exit_code"]


def print_pipeline_error(error: PipelineError, console: ConsoleProtocol) -> None:
    """Print a stage error with appropriate formatting."""
    match error:
        case ToolMissing(tool_id=tool_id, hint=hint):
            console.error(f"{tool_id}: missing")
            console.hint(hint)
        case TargetInstallFailed(target=target, detail=detail):
            console.error(f"could not install rust target {target}")
            if detail:
                console.print(detail, Style.DIM)
        case CompileFailed(component=component, returncode=rc):
            console.error(f"{component}: build failed (exit {rc})")
        case OutputMissing(path=path):
            console.error(f"output not found: {path}")
        case ResourceMissing(name=name, path=path):
            console.error(f"bundle resource missing: {name} ({path})")
        case StagingFailed(path=path, detail=detail):
            console.error(f"could not stage {path} ({detail})")
        case BundleConfigInvalid(path=path, reason=reason):
            console.error(f"invalid packaging config: {path} ({reason})")
        case BundleFailed(attempts=attempts, returncode=rc):
            console.error(f"bundling failed after {attempts} attempt(s) (exit {rc})")
        case StoreFailed(operation=operation, location=location, detail=detail):
            console.error(f"{operation} failed: {location}")
            if detail:
                console.print(detail, Style.DIM)
        case SigningSubmitFailed(status_code=status, detail=detail):
            console.error(f"signing submit rejected (status {status})")
            if detail:
                console.print(detail, Style.DIM)
        case SigningPollFailed(job_id=job_id, status_code=status, detail=detail):
            console.error(f"signing status check failed for job {job_id} (status {status})")
            if detail:
                console.print(detail, Style.DIM)
        case SigningJobFailed(job_id=job_id, state=state):
            console.error(f"signing job {job_id} reported state '{state}'")
            console.hint("check the signing service logs for this job")
        case SigningTimeout(job_id=job_id, elapsed=elapsed, deadline=deadline):
            console.error(
                f"signing job {job_id} did not complete within {deadline:.0f}s "
                f"(waited {elapsed:.0f}s)"
            )
        case PublishFailed(path=path, detail=detail):
            console.error(f"publish failed: {path} ({detail})")
        case SmokeTestFailed(app=app, reason=reason):
            console.error(f"smoke test failed for {app.name}: {reason}")


def pipeline_error_exit_code(error: PipelineError) -> int:
    """Get exit code for a stage error."""
    match error:
        case ToolMissing() | TargetInstallFailed():
            return int(ErrorCode.ENV_ERROR)
        case CompileFailed():
            return int(ErrorCode.BUILD_ERROR)
        case OutputMissing():
            return int(ErrorCode.IO_ERROR)
        case ResourceMissing() | StagingFailed() | BundleConfigInvalid() | BundleFailed():
            return int(ErrorCode.BUNDLE_ERROR)
        case (
            StoreFailed()
            | SigningSubmitFailed()
            | SigningPollFailed()
            | SigningJobFailed()
            | SigningTimeout()
        ):
            return int(ErrorCode.SIGNING_ERROR)
        case PublishFailed() | SmokeTestFailed():
            return int(ErrorCode.PUBLISH_ERROR)
