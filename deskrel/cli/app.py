from __future__ import annotations

import os
from pathlib import Path

import typer

from deskrel import __version__
from deskrel.cli.commands.build_cmd import build
from deskrel.cli.commands.bundle_cmd import bundle
from deskrel.cli.commands.reclaim_cmd import reclaim
from deskrel.cli.commands.run_cmd import run
from deskrel.cli.commands.sign_cmd import sign
from deskrel.cli.commands.smoke_cmd import smoke
from deskrel.cli.context import CONFIG_ENV_VAR
from deskrel.core.errors import ErrorCode

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(run)
app.command()(reclaim)
app.command()(build)
app.command()(bundle)
app.command()(sign)
app.command()(smoke)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        help="Workspace root (overrides auto detection)",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: <workspace>/deskrel.toml)",
    ),
) -> None:
    del version
    if workspace is not None:
        try:
            root = workspace.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --workspace: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir():
            typer.echo(f"error: --workspace '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ["DESKREL_WORKSPACE"] = str(root)

    if config is not None:
        path = config.expanduser()
        if not path.is_file():
            typer.echo(f"error: --config '{path}' not found", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[CONFIG_ENV_VAR] = str(path.resolve())


def main() -> None:
    app()
