"""Artifact builder.

Produces every executable the desktop bundle ships:

- cargo binaries: ``cargo build --release -p <package> --target <triple>``
- command binaries: a project build script (e.g. ``temporal-service/build.sh``)

The target triple is installed with rustup when missing. A compile failure
is fatal and never retried: the same source fails the same way.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from deskrel.core.config import BinarySpec, BuildConfig
from deskrel.core.release import BuildSpec
from deskrel.core.result import Err, Ok, Result
from deskrel.core.workspace import Workspace
from deskrel.output.console import ConsoleProtocol
from deskrel.platform.process import run as run_process
from deskrel.platform.process import run_silent

from .errors import BuildError, CompileFailed, OutputMissing, TargetInstallFailed, ToolMissing
from .model import BinaryOutput
from .timeouts import COMPILE_TIMEOUT_SECONDS, RUSTUP_TIMEOUT_SECONDS

_RUST_HINT = "Install Rust via https://rustup.rs/"


class ArtifactBuilder:
    """Build the configured binaries for one BuildSpec."""

    def __init__(
        self,
        *,
        workspace: Workspace,
        build: BuildConfig,
        console: ConsoleProtocol,
    ) -> None:
        self._workspace = workspace
        self._build = build
        self._console = console

    def build(self, spec: BuildSpec) -> Result[tuple[BinaryOutput, ...], BuildError]:
        """Build every configured binary, in order.

        Returns:
            Ok(outputs) in configuration order
            Err(BuildError) on the first failure
        """
        needs_cargo = any(b.kind == "cargo" for b in self._build.binaries)
        if needs_cargo:
            for tool in ("rustup", "cargo"):
                found = self._which(tool)
                if isinstance(found, Err):
                    return found

            ensured = self.ensure_target(spec.target)
            if isinstance(ensured, Err):
                return ensured

        outputs: list[BinaryOutput] = []
        for binary in self._build.binaries:
            built = (
                self._build_cargo(binary, spec)
                if binary.kind == "cargo"
                else self._build_command(binary, spec)
            )
            if isinstance(built, Err):
                return built
            outputs.append(built.value)
            self._console.success(f"{binary.name}: {built.value.path}")

        return Ok(tuple(outputs))

    def ensure_target(self, target: str) -> Result[None, BuildError]:
        """Install the rustup target if it is not installed yet."""
        listed = run_process(
            ["rustup", "target", "list", "--installed"],
            cwd=self._workspace.root,
            timeout=RUSTUP_TIMEOUT_SECONDS,
        )
        if isinstance(listed, Err):
            return Err(
                TargetInstallFailed(
                    target=target,
                    detail=listed.error.stderr.strip() or str(listed.error),
                )
            )
        if target in listed.value.split():
            return Ok(None)

        cmd = ["rustup", "target", "add", target]
        self._console.command(cmd)
        added = run_process(cmd, cwd=self._workspace.root, timeout=RUSTUP_TIMEOUT_SECONDS)
        if isinstance(added, Err):
            return Err(
                TargetInstallFailed(
                    target=target,
                    detail=added.error.stderr.strip() or str(added.error),
                )
            )
        return Ok(None)

    def output_path(self, binary: BinarySpec, spec: BuildSpec) -> Path:
        """Where ``binary`` lands once built."""
        if binary.kind == "cargo":
            return self._workspace.cargo_output(spec.target, binary.bin or binary.name)
        return self._workspace.resolve(binary.output or binary.name)

    def existing_outputs(self, spec: BuildSpec) -> Result[tuple[BinaryOutput, ...], BuildError]:
        """Outputs of a previous build, without building. Used by standalone bundling."""
        outputs: list[BinaryOutput] = []
        for binary in self._build.binaries:
            out = self.output_path(binary, spec)
            if not out.is_file():
                return Err(OutputMissing(path=out))
            outputs.append(BinaryOutput(name=binary.name, path=out))
        return Ok(tuple(outputs))

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _build_cargo(self, binary: BinarySpec, spec: BuildSpec) -> Result[BinaryOutput, BuildError]:
        package = binary.package or binary.name
        cmd = ["cargo", "build", "--release", "-p", package, "--target", spec.target, *spec.flags]
        self._console.command(cmd)
        result = run_silent(
            cmd,
            cwd=self._workspace.root,
            timeout=COMPILE_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(CompileFailed(component=binary.name, returncode=result.error.returncode))

        out = self.output_path(binary, spec)
        if not out.is_file():
            return Err(OutputMissing(path=out))
        return Ok(BinaryOutput(name=binary.name, path=out))

    def _build_command(
        self, binary: BinarySpec, spec: BuildSpec
    ) -> Result[BinaryOutput, BuildError]:
        cwd = self._workspace.resolve(binary.cwd)
        cmd = list(binary.command)
        self._console.command(cmd)
        result = run_silent(cmd, cwd=cwd, timeout=COMPILE_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(CompileFailed(component=binary.name, returncode=result.error.returncode))

        out = self.output_path(binary, spec)
        if not out.is_file():
            return Err(OutputMissing(path=out))
        return Ok(BinaryOutput(name=binary.name, path=out))

    def _which(self, tool_id: str) -> Result[Path, BuildError]:
        found = shutil.which(tool_id)
        if found:
            return Ok(Path(found))
        return Err(ToolMissing(tool_id=tool_id, hint=_RUST_HINT))
