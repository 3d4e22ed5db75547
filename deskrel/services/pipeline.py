"""Release pipeline.

Runs the stages of one release in a fixed order and stops at the first fatal
error:

    reclaim(pre_build) → build → reclaim(post_build) → bundle
    → sign (optional) → reclaim(final) → publish → smoke test (optional)

Reclaim steps are best-effort and never stop the run.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from deskrel.core.config import PipelineConfig
from deskrel.core.release import BuildSpec, RunContext
from deskrel.core.result import Err, Ok, Result
from deskrel.core.workspace import Workspace
from deskrel.output.console import ConsoleProtocol, Style
from deskrel.platform.detection import detect_platform, host_arch

from .builder import ArtifactBuilder
from .bundler import BundleAssembler
from .disk_guard import DiskGuard, ReclaimReport, Scope
from .errors import PipelineError
from .model import BinaryOutput, SignedArtifact, UnsignedArtifact
from .publisher import ProcessControl, Publisher, SystemProcessControl
from .signing import (
    LambdaSigningService,
    ObjectStore,
    RemoteSigningClient,
    S3ObjectStore,
    SigningService,
)


def _empty_reclaims() -> list[ReclaimReport]:
    return []


@dataclass(slots=True)
class PipelineReport:
    """What a run produced. Stages that did not run leave their field unset."""

    spec: BuildSpec
    run: RunContext
    reclaims: list[ReclaimReport] = field(default_factory=_empty_reclaims)
    binaries: tuple[BinaryOutput, ...] = ()
    unsigned: UnsignedArtifact | None = None
    signed: SignedArtifact | None = None
    published: Path | None = None
    smoke_passed: bool | None = None

    @property
    def signing_skipped(self) -> bool:
        return self.signed is None


class ReleasePipeline:
    def __init__(
        self,
        *,
        config: PipelineConfig,
        workspace: Workspace,
        spec: BuildSpec,
        run: RunContext,
        console: ConsoleProtocol,
        store: ObjectStore | None = None,
        service: SigningService | None = None,
        process_control: ProcessControl | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._workspace = workspace
        self._spec = spec
        self._run = run
        self._console = console
        self._store = store
        self._service = service
        self._process_control = process_control
        self._sleep = sleep
        self._clock = clock

        self.guard = DiskGuard(
            workspace=workspace,
            cleanup=config.cleanup,
            target=spec.target,
            console=console,
        )
        self.builder = ArtifactBuilder(workspace=workspace, build=config.build, console=console)
        self.assembler = BundleAssembler(
            workspace=workspace, bundle=config.bundle, console=console
        )

    def signing_client(self) -> RemoteSigningClient:
        signing = self._config.signing
        cwd = self._workspace.root
        store = self._store or S3ObjectStore(signing.bucket, cwd=cwd, region=signing.region)
        service = self._service or LambdaSigningService(
            signing.function, cwd=cwd, region=signing.region
        )
        return RemoteSigningClient(
            store=store,
            service=service,
            signing=signing,
            console=self._console,
            sleep=self._sleep,
            clock=self._clock,
        )

    def publisher(self) -> Publisher:
        control = self._process_control or SystemProcessControl(cwd=self._workspace.root)
        return Publisher(
            workspace=self._workspace,
            publish=self._config.publish,
            console=self._console,
            process_control=control,
            sleep=self._sleep,
        )

    def run(self) -> Result[PipelineReport, PipelineError]:
        """Run every stage. Returns the report, or the first fatal error."""
        console = self._console
        report = PipelineReport(spec=self._spec, run=self._run)

        label = f" {self._spec.version}" if self._spec.version else ""
        console.header(f"Release{label} ({self._spec.target}, {self._spec.arch})")
        console.print(f"workspace: {self._workspace}", Style.DIM)
        console.print(f"run: {self._run.run_id} @ {self._run.commit_sha}", Style.DIM)
        console.print(f"host: {detect_platform()}/{host_arch()}", Style.DIM)
        if self._config.publish.smoke and host_arch() != self._spec.arch:
            console.warning(f"smoke test: {self._spec.arch} app on {host_arch()} host")
        self.guard.report_usage("start")

        report.reclaims.append(self._reclaim(Scope.PRE_BUILD))

        console.header("Build")
        built = self.builder.build(self._spec)
        if isinstance(built, Err):
            return built
        report.binaries = built.value
        console.success(f"built {len(built.value)} binaries")

        report.reclaims.append(self._reclaim(Scope.POST_BUILD))

        console.header("Bundle")
        assembled = self.assembler.assemble(
            built.value, self._config.bundle.resources, self._spec
        )
        if isinstance(assembled, Err):
            return assembled
        report.unsigned = assembled.value
        console.success(str(assembled.value.path))

        artifact = assembled.value
        console.header("Sign")
        if self._config.signing.enabled:
            client = self.signing_client()
            prepared = client.add_extra_files(artifact, self.assembler.desktop_dir)
            if isinstance(prepared, Err):
                return prepared
            signed = client.sign(artifact, self._run)
            if isinstance(signed, Err):
                return signed
            report.signed = signed.value
            console.success(f"signed (job {signed.value.job_id})")
        else:
            console.print("signing disabled: skipped", Style.DIM)

        report.reclaims.append(self._reclaim(Scope.FINAL))

        publisher = self.publisher()
        console.header("Publish")
        published = publisher.publish(artifact.path)
        if isinstance(published, Err):
            return published
        report.published = published.value
        console.success(str(published.value))

        console.header("Smoke test")
        if self._config.publish.smoke:
            smoked = publisher.smoke_test(artifact.app_path)
            if isinstance(smoked, Err):
                report.smoke_passed = False
                return smoked
            report.smoke_passed = True
            console.success("app launched and stayed open")
        else:
            console.print("smoke test disabled: skipped", Style.DIM)

        return Ok(report)

    def _reclaim(self, scope: Scope) -> ReclaimReport:
        self._console.header(f"Reclaim disk ({scope})")
        return self.guard.reclaim(scope)
