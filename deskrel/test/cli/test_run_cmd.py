"""Tests for the run/sign/smoke/build commands with injected context."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

import deskrel.cli.commands._helpers as helpers
import deskrel.cli.commands.build_cmd as build_cmd
import deskrel.cli.commands.run_cmd as run_cmd
import deskrel.cli.commands.sign_cmd as sign_cmd
from deskrel.cli.context import CLIContext
from deskrel.core.config import PipelineConfig
from deskrel.core.errors import ErrorCode
from deskrel.core.release import BuildSpec, RunContext
from deskrel.core.result import Err, Ok, Result
from deskrel.core.workspace import Workspace
from deskrel.output.console import ConsoleProtocol, MockConsole
from deskrel.services.errors import BundleFailed, CompileFailed, PipelineError


def _ctx(tmp_path: Path, config: PipelineConfig | None = None) -> CLIContext:
    return CLIContext(
        workspace=Workspace(root=tmp_path),
        config=config or PipelineConfig(),
        console=MockConsole(),
    )


class RecordingPipeline:
    """Captures what the command passes to the pipeline and returns a scripted outcome."""

    instances: list[RecordingPipeline] = []
    outcome: Result[object, PipelineError] = Ok(None)

    def __init__(
        self,
        *,
        config: PipelineConfig,
        workspace: Workspace,
        spec: BuildSpec,
        run: RunContext,
        console: ConsoleProtocol,
    ) -> None:
        self.config = config
        self.workspace = workspace
        self.spec = spec
        self.run_ctx = run
        self.console = console
        RecordingPipeline.instances.append(self)

    def run(self) -> Result[object, PipelineError]:
        return RecordingPipeline.outcome


class _Report:
    published = Path("dist/Goose-darwin-x64/Goose_intel_mac.zip")


@pytest.fixture
def pipeline(monkeypatch: pytest.MonkeyPatch) -> type[RecordingPipeline]:
    RecordingPipeline.instances = []
    RecordingPipeline.outcome = Ok(_Report())
    monkeypatch.setattr(run_cmd, "ReleasePipeline", RecordingPipeline)
    monkeypatch.setattr(helpers, "_head_commit", lambda ctx: "headsha")
    return RecordingPipeline


def _invoke_run(**overrides: object) -> None:
    args: dict[str, object] = {
        "target": None,
        "arch": None,
        "version_label": None,
        "sign": None,
        "smoke": None,
        "run_id": None,
        "commit_sha": None,
        "origin_url": None,
    }
    args.update(overrides)
    run_cmd.run(**args)  # type: ignore[arg-type]


def test_run_applies_overrides(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, pipeline: type[RecordingPipeline]
) -> None:
    ctx = _ctx(tmp_path)
    monkeypatch.setattr(run_cmd, "build_context", lambda: ctx)
    monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)

    _invoke_run(
        target="aarch64-apple-darwin",
        arch="arm64",
        version_label="1.4.0",
        sign=True,
        smoke=False,
        run_id="777",
        commit_sha="cafe",
        origin_url="https://ci/777",
    )

    (instance,) = pipeline.instances
    assert instance.spec == BuildSpec(target="aarch64-apple-darwin", arch="arm64", version="1.4.0")
    assert instance.config.signing.enabled is True
    assert instance.config.publish.smoke is False
    assert instance.run_ctx == RunContext(
        run_id="777", commit_sha="cafe", origin_url="https://ci/777"
    )
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("release ready")


def test_run_defaults_run_identity(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, pipeline: type[RecordingPipeline]
) -> None:
    monkeypatch.setattr(run_cmd, "build_context", lambda: _ctx(tmp_path))
    monkeypatch.setenv("GITHUB_REPOSITORY", "block/goose")
    monkeypatch.delenv("GITHUB_SERVER_URL", raising=False)

    _invoke_run(run_id="555")
    _invoke_run()

    first, second = pipeline.instances
    assert first.run_ctx.commit_sha == "headsha"
    assert first.run_ctx.origin_url == "https://github.com/block/goose/actions/runs/555"
    assert second.run_ctx.run_id.startswith("local-")
    assert first.config.signing.enabled is False


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (CompileFailed(component="goosed", returncode=101), ErrorCode.BUILD_ERROR),
        (BundleFailed(attempts=2, returncode=1), ErrorCode.BUNDLE_ERROR),
    ],
)
def test_run_maps_errors_to_exit_codes(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    pipeline: type[RecordingPipeline],
    error: PipelineError,
    code: ErrorCode,
) -> None:
    ctx = _ctx(tmp_path)
    monkeypatch.setattr(run_cmd, "build_context", lambda: ctx)
    pipeline.outcome = Err(error)

    with pytest.raises(typer.Exit) as exc:
        _invoke_run(run_id="1", commit_sha="x")

    assert exc.value.exit_code == int(code)
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.has_error()


def test_sign_requires_existing_archive(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sign_cmd, "build_context", lambda: _ctx(tmp_path))

    with pytest.raises(typer.Exit) as exc:
        sign_cmd.sign(
            archive=tmp_path / "missing.zip", run_id="1", commit_sha="x", origin_url=""
        )

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_build_failure_exit_code(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    class FailingBuilder:
        def __init__(self, **_: object) -> None:
            pass

        def build(self, spec: BuildSpec) -> Result[tuple[()], PipelineError]:
            return Err(CompileFailed(component="goosed", returncode=101))

    monkeypatch.setattr(build_cmd, "build_context", lambda: _ctx(tmp_path))
    monkeypatch.setattr(build_cmd, "ArtifactBuilder", FailingBuilder)

    with pytest.raises(typer.Exit) as exc:
        build_cmd.build(target=None)

    assert exc.value.exit_code == int(ErrorCode.BUILD_ERROR)


def test_with_toggles_leaves_config_untouched_when_unset() -> None:
    config = PipelineConfig()
    assert helpers.with_toggles(config) is config
