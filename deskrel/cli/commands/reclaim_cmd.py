"""Reclaim command - free disk space for one pipeline scope."""

from __future__ import annotations

import typer

from deskrel.cli.context import build_context
from deskrel.core.release import resolve_build_spec
from deskrel.output.console import Style
from deskrel.services.disk_guard import DiskGuard, Scope


def reclaim(
    scope: Scope = typer.Argument(..., help="pre_build | post_build | final"),
    target: str | None = typer.Option(
        None, "--target", help="Rust target triple", show_default=False
    ),
) -> None:
    """Remove caches and build byproducts (best-effort, never fails)."""
    ctx = build_context()
    spec = resolve_build_spec(ctx.config, target=target)
    guard = DiskGuard(
        workspace=ctx.workspace,
        cleanup=ctx.config.cleanup,
        target=spec.target,
        console=ctx.console,
    )
    report = guard.reclaim(scope)
    for path in report.removed:
        ctx.console.print(f"  removed {path}", Style.DIM)
