"""Sign command - run the remote signing round trip for an archive."""

from __future__ import annotations

from pathlib import Path

import typer

from deskrel.cli.commands._helpers import exit_on_pipeline_error, resolve_run_context
from deskrel.cli.context import build_context
from deskrel.core.errors import ErrorCode
from deskrel.core.result import Err
from deskrel.services.model import UnsignedArtifact
from deskrel.services.signing import LambdaSigningService, RemoteSigningClient, S3ObjectStore


def sign(
    archive: Path = typer.Argument(..., help="Zip archive to sign (overwritten in place)"),
    run_id: str | None = typer.Option(
        None, "--run-id", envvar="GITHUB_RUN_ID", help="CI run id", show_default=False
    ),
    commit_sha: str | None = typer.Option(
        None,
        "--commit-sha",
        envvar="GITHUB_SHA",
        help="Commit being released",
        show_default=False,
    ),
    origin_url: str | None = typer.Option(
        None, "--origin-url", help="URL of the requesting CI job", show_default=False
    ),
) -> None:
    """Upload, submit, poll until signed, download over the archive."""
    ctx = build_context()
    path = archive if archive.is_absolute() else Path.cwd() / archive
    if not path.is_file():
        ctx.console.error(f"archive not found: {path}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    signing = ctx.config.signing
    root = ctx.workspace.root
    client = RemoteSigningClient(
        store=S3ObjectStore(signing.bucket, cwd=root, region=signing.region),
        service=LambdaSigningService(signing.function, cwd=root, region=signing.region),
        signing=signing,
        console=ctx.console,
    )
    run_ctx = resolve_run_context(
        ctx, run_id=run_id, commit_sha=commit_sha, origin_url=origin_url
    )
    artifact = UnsignedArtifact(path=path, app_path=path.with_suffix(".app"))

    prepared = client.add_extra_files(artifact, ctx.workspace.desktop_dir(ctx.config.bundle))
    if isinstance(prepared, Err):
        exit_on_pipeline_error(prepared.error, ctx)

    result = client.sign(artifact, run_ctx)
    if isinstance(result, Err):
        exit_on_pipeline_error(result.error, ctx)
    ctx.console.success(f"{result.value.path} (job {result.value.job_id})")
