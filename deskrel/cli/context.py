from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from deskrel.core.config import PipelineConfig, load_config_or_default
from deskrel.core.errors import ErrorCode
from deskrel.core.result import Err
from deskrel.core.workspace import Workspace, detect_workspace
from deskrel.output.console import ConsoleProtocol, RichConsole, Style

CONFIG_ENV_VAR = "DESKREL_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    config: PipelineConfig
    console: ConsoleProtocol


def config_path_for(workspace: Workspace) -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        p = Path(override).expanduser()
        return p if p.is_absolute() else workspace.root / p
    return workspace.config_path


def build_context() -> CLIContext:
    workspace = detect_workspace()
    console = RichConsole()

    config_result = load_config_or_default(config_path_for(workspace))
    if isinstance(config_result, Err):
        error = config_result.error
        console.error(error.message)
        if error.path is not None:
            console.print(f"config: {error.path}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(workspace=workspace, config=config_result.value, console=console)
