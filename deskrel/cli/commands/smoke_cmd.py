"""Smoke command - launch an app bundle and check it stays up."""

from __future__ import annotations

from pathlib import Path

import typer

from deskrel.cli.commands._helpers import exit_on_pipeline_error
from deskrel.cli.context import build_context
from deskrel.core.result import Err
from deskrel.services.publisher import Publisher, SystemProcessControl


def smoke(
    app: Path | None = typer.Argument(
        None, help="App bundle (default: the bundle output)", show_default=False
    ),
) -> None:
    """Open the app in the background, wait, check the process, stop it."""
    ctx = build_context()
    bundle = ctx.config.bundle
    app_path = app if app is not None else ctx.workspace.bundle_output_dir(bundle) / bundle.app
    if not app_path.is_absolute():
        app_path = Path.cwd() / app_path

    publisher = Publisher(
        workspace=ctx.workspace,
        publish=ctx.config.publish,
        console=ctx.console,
        process_control=SystemProcessControl(cwd=ctx.workspace.root),
    )
    result = publisher.smoke_test(app_path)
    if isinstance(result, Err):
        exit_on_pipeline_error(result.error, ctx)
    ctx.console.success(f"{app_path.name} launched and stayed open")
