"""Shared helpers for CLI commands."""

from __future__ import annotations

import os
from dataclasses import replace
from typing import TYPE_CHECKING, NoReturn

import typer

from deskrel.core.config import PipelineConfig
from deskrel.core.release import RunContext, new_run_id
from deskrel.core.result import Ok
from deskrel.output.errors import pipeline_error_exit_code, print_pipeline_error
from deskrel.platform.process import run as run_process

if TYPE_CHECKING:
    from deskrel.cli.context import CLIContext
    from deskrel.services.errors import PipelineError


def exit_on_pipeline_error(error: PipelineError, ctx: CLIContext) -> NoReturn:
    """Print the error and exit with its code."""
    print_pipeline_error(error, ctx.console)
    raise typer.Exit(code=pipeline_error_exit_code(error))


def with_toggles(
    config: PipelineConfig,
    *,
    sign: bool | None = None,
    smoke: bool | None = None,
) -> PipelineConfig:
    """Apply --sign/--smoke switches over the loaded config."""
    if sign is not None:
        config = replace(config, signing=replace(config.signing, enabled=sign))
    if smoke is not None:
        config = replace(config, publish=replace(config.publish, smoke=smoke))
    return config


def _head_commit(ctx: CLIContext) -> str:
    result = run_process(["git", "rev-parse", "HEAD"], cwd=ctx.workspace.root, timeout=30)
    if isinstance(result, Ok) and result.value.strip():
        return result.value.strip()
    return "unknown"


def default_origin_url(run_id: str) -> str:
    """URL of the CI job that requested the release, when running on GitHub Actions."""
    repository = os.environ.get("GITHUB_REPOSITORY")
    if not repository:
        return ""
    server = os.environ.get("GITHUB_SERVER_URL", "https://github.com").rstrip("/")
    return f"{server}/{repository}/actions/runs/{run_id}"


def resolve_run_context(
    ctx: CLIContext,
    *,
    run_id: str | None,
    commit_sha: str | None,
    origin_url: str | None,
) -> RunContext:
    """Fill in the run identity once, before any stage runs."""
    rid = run_id or new_run_id()
    return RunContext(
        run_id=rid,
        commit_sha=commit_sha or _head_commit(ctx),
        origin_url=origin_url if origin_url is not None else default_origin_url(rid),
    )
