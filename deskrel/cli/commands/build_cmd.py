"""Build command - compile the binaries the bundle ships."""

from __future__ import annotations

import typer

from deskrel.cli.commands._helpers import exit_on_pipeline_error
from deskrel.cli.context import build_context
from deskrel.core.release import resolve_build_spec
from deskrel.core.result import Err
from deskrel.services.builder import ArtifactBuilder


def build(
    target: str | None = typer.Option(
        None, "--target", help="Rust target triple", show_default=False
    ),
) -> None:
    """Build every configured binary for the target."""
    ctx = build_context()
    spec = resolve_build_spec(ctx.config, target=target)
    builder = ArtifactBuilder(workspace=ctx.workspace, build=ctx.config.build, console=ctx.console)

    result = builder.build(spec)
    if isinstance(result, Err):
        exit_on_pipeline_error(result.error, ctx)
