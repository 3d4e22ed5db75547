"""Run command - the full release pipeline."""

from __future__ import annotations

import typer

from deskrel.cli.commands._helpers import (
    exit_on_pipeline_error,
    resolve_run_context,
    with_toggles,
)
from deskrel.cli.context import build_context
from deskrel.core.release import resolve_build_spec
from deskrel.core.result import Err
from deskrel.services.pipeline import ReleasePipeline


def run(
    target: str | None = typer.Option(
        None, "--target", help="Rust target triple", show_default=False
    ),
    arch: str | None = typer.Option(
        None, "--arch", help="Packaging tool architecture (e.g. x64)", show_default=False
    ),
    version_label: str | None = typer.Option(
        None, "--version-label", help="Version shown in the run header", show_default=False
    ),
    sign: bool | None = typer.Option(
        None, "--sign/--no-sign", help="Submit the bundle for remote signing", show_default=False
    ),
    smoke: bool | None = typer.Option(
        None, "--smoke/--no-smoke", help="Launch the app after publishing", show_default=False
    ),
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
    """Build, bundle, sign, publish and smoke-test the desktop app."""
    ctx = build_context()
    config = with_toggles(ctx.config, sign=sign, smoke=smoke)
    spec = resolve_build_spec(config, target=target, arch=arch, version=version_label)
    run_ctx = resolve_run_context(
        ctx, run_id=run_id, commit_sha=commit_sha, origin_url=origin_url
    )

    pipeline = ReleasePipeline(
        config=config,
        workspace=ctx.workspace,
        spec=spec,
        run=run_ctx,
        console=ctx.console,
    )
    result = pipeline.run()
    if isinstance(result, Err):
        exit_on_pipeline_error(result.error, ctx)

    report = result.value
    ctx.console.success(f"release ready: {report.published}")
