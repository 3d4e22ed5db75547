"""Immutable per-run inputs resolved once at pipeline start."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from .config import PipelineConfig

__all__ = ["BuildSpec", "RunContext", "resolve_build_spec", "new_run_id"]


@dataclass(frozen=True, slots=True)
class BuildSpec:
    """What to build: target triple, packaging arch, version and cargo flags."""

    target: str
    arch: str
    version: str
    flags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RunContext:
    """Identity of one pipeline run.

    ``run_id`` is part of every remote upload key, so two concurrent runs
    never write the same object.
    """

    run_id: str
    commit_sha: str
    origin_url: str


def new_run_id() -> str:
    return f"local-{uuid4().hex[:12]}"


def resolve_build_spec(
    config: PipelineConfig,
    *,
    target: str | None = None,
    arch: str | None = None,
    version: str | None = None,
) -> BuildSpec:
    """Merge CLI overrides over config values."""
    return BuildSpec(
        target=target or config.build.target,
        arch=arch or config.bundle.arch,
        version=version if version is not None else config.version,
        flags=config.build.flags,
    )
