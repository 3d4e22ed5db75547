"""Remote signing client: the effect layer around the signing state machine.

upload → submit → poll every ``poll_interval`` seconds → download.

Nothing here is retried. A rejected submit, a failed poll, a job reported
as failed and a deadline overrun each abort with their own error kind.
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from pathlib import Path
from zipfile import ZIP_DEFLATED, BadZipFile, ZipFile

from deskrel.core.config import SigningConfig
from deskrel.core.release import RunContext
from deskrel.core.result import Err, Ok, Result
from deskrel.output.console import ConsoleProtocol, Style
from deskrel.platform.files import atomic_write_bytes

from ..errors import (
    OutputMissing,
    SigningError,
    SigningJobFailed,
    SigningPollFailed,
    SigningSubmitFailed,
    SigningTimeout,
    StoreFailed,
)
from ..model import SignedArtifact, UnsignedArtifact
from .machine import (
    PollReply,
    SigningJob,
    SigningState,
    SubmitReply,
    UploadDone,
    advance,
    new_job,
)
from .service import ServiceCallError, SigningReply, SigningService
from .store import ObjectStore, StoreError

Sleep = Callable[[float], None]
Clock = Callable[[], float]


class RemoteSigningClient:
    def __init__(
        self,
        *,
        store: ObjectStore,
        service: SigningService,
        signing: SigningConfig,
        console: ConsoleProtocol,
        sleep: Sleep = time.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        self._store = store
        self._service = service
        self._signing = signing
        self._console = console
        self._sleep = sleep
        self._clock = clock
        self.job: SigningJob | None = None

    def upload_key(self, run: RunContext) -> str:
        """Remote key of the unsigned archive, unique per run."""
        s = self._signing
        name = f"{s.app_label}-{run.commit_sha}-{run.run_id}-{s.arch_label}.zip"
        return f"{s.prefix.strip('/')}/{name}" if s.prefix else name

    def add_extra_files(
        self, artifact: UnsignedArtifact, base_dir: Path
    ) -> Result[None, SigningError]:
        """Add the configured extra files (entitlements) to the archive root.

        An entry already in the archive is replaced when its content differs
        from the file on disk, so a re-sign always ships the current file.
        """
        extras: dict[str, Path] = {}
        for rel in self._signing.extra_files:
            src = base_dir / rel
            if not src.is_file():
                return Err(OutputMissing(path=src))
            extras[Path(rel).as_posix()] = src
        if not extras:
            return Ok(None)

        try:
            with ZipFile(artifact.path) as zf:
                present = set(zf.namelist())
                stale = {
                    name
                    for name, src in extras.items()
                    if name in present and zf.read(name) != src.read_bytes()
                }
            if stale:
                _drop_entries(artifact.path, stale)
            with ZipFile(artifact.path, "a", compression=ZIP_DEFLATED) as zf:
                for name, src in extras.items():
                    if name in stale or name not in present:
                        zf.write(src, arcname=name)
        except (OSError, BadZipFile) as e:
            return Err(
                StoreFailed(operation="prepare", location=str(artifact.path), detail=str(e))
            )
        return Ok(None)

    def sign(
        self, artifact: UnsignedArtifact, run: RunContext
    ) -> Result[SignedArtifact, SigningError]:
        """Sign ``artifact`` remotely and overwrite it with the signed bytes."""
        job = new_job(self._signing.deadline)
        self.job = job

        try:
            data = artifact.path.read_bytes()
        except OSError:
            return Err(OutputMissing(path=artifact.path))

        self._console.print("uploading unsigned app")
        put = self._store.put(self.upload_key(run), data).map_err(_store_failed("upload"))
        if isinstance(put, Err):
            return put
        job = self._apply(job, UploadDone(location=put.value))

        self._console.print("launching signing process")
        submitted = self._service.submit(put.value, run.origin_url)
        job = self._apply(job, _submit_event(submitted, at=self._clock()))
        if job.state == SigningState.FAILED:
            return Err(SigningSubmitFailed(status_code=job.status_code or 0, detail=job.detail))

        job_id = job.job_id or ""
        self._console.info(f"signing job {job_id} submitted")
        while not job.state.is_terminal:
            self._sleep(self._signing.poll_interval)
            polled = self._service.poll(put.value, job_id)
            job = self._apply(job, _poll_event(polled, at=self._clock()))
            if job.state == SigningState.POLLING:
                self._console.print(
                    f"waiting for signing to complete ({job.elapsed:.0f}s)", Style.DIM
                )

        match job.state:
            case SigningState.COMPLETED:
                self._console.success(f"signing complete ({job.elapsed:.0f}s)")
            case SigningState.TIMED_OUT:
                return Err(
                    SigningTimeout(job_id=job_id, elapsed=job.elapsed, deadline=job.deadline)
                )
            case _ if job.failure == "job":
                return Err(SigningJobFailed(job_id=job_id, state=job.remote_state or "failed"))
            case _:
                return Err(
                    SigningPollFailed(
                        job_id=job_id,
                        status_code=job.status_code or 0,
                        detail=job.detail,
                    )
                )

        destination = job.destination or ""
        self._console.print("downloading signed app")
        fetched = self._store.get(destination).map_err(_store_failed("download"))
        if isinstance(fetched, Err):
            return fetched

        try:
            atomic_write_bytes(artifact.path, fetched.value)
        except OSError as e:
            return Err(
                StoreFailed(operation="download", location=str(artifact.path), detail=str(e))
            )

        return Ok(
            SignedArtifact(
                path=artifact.path,
                app_path=artifact.app_path,
                location=destination,
                job_id=job_id,
            )
        )

    def _apply(self, job: SigningJob, event: UploadDone | SubmitReply | PollReply) -> SigningJob:
        job = advance(job, event)
        self.job = job
        return job


def _submit_event(reply: Result[SigningReply, ServiceCallError], *, at: float) -> SubmitReply:
    if isinstance(reply, Err):
        return SubmitReply(status_code=0, job_id=None, at=at, detail=reply.error.message)
    r = reply.value
    return SubmitReply(status_code=r.status_code, job_id=r.job_id, at=at)


def _poll_event(reply: Result[SigningReply, ServiceCallError], *, at: float) -> PollReply:
    if isinstance(reply, Err):
        return PollReply(
            status_code=0, state=None, destination=None, at=at, detail=reply.error.message
        )
    r = reply.value
    return PollReply(status_code=r.status_code, state=r.state, destination=r.destination, at=at)


def _store_failed(operation: str) -> Callable[[StoreError], StoreFailed]:
    def wrap(error: StoreError) -> StoreFailed:
        return StoreFailed(operation=operation, location=error.location, detail=error.message)

    return wrap


def _drop_entries(archive: Path, names: set[str]) -> None:
    """Rewrite ``archive`` without ``names``, keeping every other entry's metadata."""
    tmp = archive.with_name(f".{archive.name}.tmp")
    try:
        with ZipFile(archive) as src, ZipFile(tmp, "w") as dst:
            for info in src.infolist():
                if info.filename not in names:
                    dst.writestr(info, src.read(info))
        os.replace(tmp, archive)
    finally:
        tmp.unlink(missing_ok=True)
