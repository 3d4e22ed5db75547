"""Bundle assembler.

Copies the built binaries and fixed resources into the desktop app tree,
pins the packaging architecture in ``package.json`` and runs the packaging
tool. The packaging tool is flaky (file-lock contention), so it gets a
bounded number of attempts with a fixed delay; the output directory is
wiped before each attempt.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from pathlib import Path
from time import sleep

from deskrel.core.config import BundleConfig, ResourceSpec
from deskrel.core.release import BuildSpec
from deskrel.core.result import Err, Ok, Result
from deskrel.core.workspace import Workspace
from deskrel.output.console import ConsoleProtocol
from deskrel.platform.files import atomic_write_text, copy_executable, remove_path
from deskrel.platform.process import run_silent

from .errors import (
    BundleConfigInvalid,
    BundleError,
    BundleFailed,
    OutputMissing,
    ResourceMissing,
    StagingFailed,
)
from .model import BinaryOutput, UnsignedArtifact
from .timeouts import BUNDLE_TIMEOUT_SECONDS

_SEGMENT_RE = re.compile(r"^(?P<key>[^\[\]]+)(?P<indexes>(\[\d+\])*)$")


class BundleAssembler:
    def __init__(
        self,
        *,
        workspace: Workspace,
        bundle: BundleConfig,
        console: ConsoleProtocol,
    ) -> None:
        self._workspace = workspace
        self._bundle = bundle
        self._console = console

    @property
    def desktop_dir(self) -> Path:
        return self._workspace.desktop_dir(self._bundle)

    @property
    def output_dir(self) -> Path:
        return self._workspace.bundle_output_dir(self._bundle)

    def assemble(
        self,
        binaries: Sequence[BinaryOutput],
        resources: Sequence[ResourceSpec],
        spec: BuildSpec,
    ) -> Result[UnsignedArtifact, BundleError]:
        """Stage inputs, configure the architecture and package.

        Returns:
            Ok(UnsignedArtifact) pointing at the packaged archive
            Err(BundleError) on the first fatal failure
        """
        staged = self.stage(binaries, resources)
        if isinstance(staged, Err):
            return staged

        configured = self.configure_arch(spec.arch)
        if isinstance(configured, Err):
            return configured

        packaged = self.package()
        if isinstance(packaged, Err):
            return packaged

        archive = self.output_dir / self._bundle.archive
        if not archive.is_file():
            return Err(OutputMissing(path=archive))

        return Ok(UnsignedArtifact(path=archive, app_path=self.output_dir / self._bundle.app))

    def stage(
        self,
        binaries: Sequence[BinaryOutput],
        resources: Sequence[ResourceSpec],
    ) -> Result[list[Path], BundleError]:
        """Copy binaries and resources to the bundle's runtime bin directory."""
        bin_dir = self._workspace.bundle_bin_dir(self._bundle)
        copies: list[tuple[str, Path]] = [(b.name, b.path) for b in binaries]
        for res in resources:
            copies.append((res.name, self._workspace.resolve(res.source)))

        staged: list[Path] = []
        for name, src in copies:
            if not src.is_file():
                return Err(ResourceMissing(name=name, path=src))
            dest = bin_dir / name
            try:
                copy_executable(src, dest)
            except OSError as e:
                return Err(StagingFailed(path=dest, detail=str(e)))
            staged.append(dest)
        self._console.print(f"staged {len(staged)} file(s) into {bin_dir}")
        return Ok(staged)

    def configure_arch(self, arch: str) -> Result[None, BundleError]:
        """Set the architecture field of the packaging config in place."""
        path = self.desktop_dir / self._bundle.config_file
        try:
            data: object = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Err(BundleConfigInvalid(path=path, reason="file not found"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(BundleConfigInvalid(path=path, reason=str(e)))

        try:
            set_json_path(data, self._bundle.arch_field, arch)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            return Err(
                BundleConfigInvalid(path=path, reason=f"{self._bundle.arch_field}: {e}")
            )

        try:
            atomic_write_text(path, json.dumps(data, indent=2) + "\n")
        except OSError as e:
            return Err(BundleConfigInvalid(path=path, reason=f"write failed: {e}"))
        self._console.print(f"{self._bundle.arch_field} = {arch!r}")
        return Ok(None)

    def package(self) -> Result[None, BundleError]:
        """Run the packaging tool with the bounded retry policy."""
        attempts = max(1, self._bundle.attempts)
        cmd = list(self._bundle.command)
        returncode = 0

        for attempt in range(1, attempts + 1):
            self._reset_output()
            self._console.command(cmd)
            result = run_silent(cmd, cwd=self.desktop_dir, timeout=BUNDLE_TIMEOUT_SECONDS)
            if isinstance(result, Ok):
                return Ok(None)

            returncode = result.error.returncode
            if attempt < attempts:
                self._console.warning(f"Attempt {attempt} failed (exit {returncode}). Retrying...")
                sleep(self._bundle.retry_delay)

        return Err(BundleFailed(attempts=attempts, returncode=returncode))

    def _reset_output(self) -> None:
        try:
            remove_path(self.output_dir)
        except OSError as e:
            self._console.warning(f"could not reset {self.output_dir}: {e}")


def set_json_path(data: object, dotted: str, value: object) -> None:
    """Assign ``value`` at a path like ``build.mac.target[0].arch``.

    Intermediate containers must already exist; only the last key may be new.

    Raises:
        ValueError: Malformed path.
        KeyError, IndexError, TypeError: Path does not match the document.
    """
    steps: list[str | int] = []
    for segment in dotted.split("."):
        m = _SEGMENT_RE.match(segment)
        if m is None:
            raise ValueError(f"invalid path segment: {segment!r}")
        steps.append(m.group("key"))
        steps.extend(int(i) for i in re.findall(r"\[(\d+)\]", m.group("indexes")))

    node = data
    for step in steps[:-1]:
        node = _child(node, step)

    last = steps[-1]
    if isinstance(last, int):
        if not isinstance(node, list):
            raise TypeError(f"expected a list before [{last}]")
        node[last] = value
    else:
        if not isinstance(node, dict):
            raise TypeError(f"expected an object before {last!r}")
        node[last] = value


def _child(node: object, step: str | int) -> object:
    if isinstance(step, int):
        if not isinstance(node, list):
            raise TypeError(f"expected a list at [{step}]")
        return node[step]
    if not isinstance(node, dict):
        raise TypeError(f"expected an object at {step!r}")
    return node[step]
