"""Bundle command - package previously built binaries."""

from __future__ import annotations

import typer

from deskrel.cli.commands._helpers import exit_on_pipeline_error
from deskrel.cli.context import build_context
from deskrel.core.release import resolve_build_spec
from deskrel.core.result import Err
from deskrel.services.builder import ArtifactBuilder
from deskrel.services.bundler import BundleAssembler


def bundle(
    target: str | None = typer.Option(
        None, "--target", help="Rust target triple", show_default=False
    ),
    arch: str | None = typer.Option(
        None, "--arch", help="Packaging tool architecture (e.g. x64)", show_default=False
    ),
) -> None:
    """Assemble the app bundle from the outputs of `deskrel build`."""
    ctx = build_context()
    spec = resolve_build_spec(ctx.config, target=target, arch=arch)

    builder = ArtifactBuilder(workspace=ctx.workspace, build=ctx.config.build, console=ctx.console)
    outputs = builder.existing_outputs(spec)
    if isinstance(outputs, Err):
        ctx.console.hint("run `deskrel build` first")
        exit_on_pipeline_error(outputs.error, ctx)

    assembler = BundleAssembler(
        workspace=ctx.workspace, bundle=ctx.config.bundle, console=ctx.console
    )
    result = assembler.assemble(outputs.value, ctx.config.bundle.resources, spec)
    if isinstance(result, Err):
        exit_on_pipeline_error(result.error, ctx)
    ctx.console.success(str(result.value.path))
