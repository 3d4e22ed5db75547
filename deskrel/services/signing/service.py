"""Asynchronous signing service.

The service is a request/poll API:

- ``submit(source_location, origin_ref)`` starts a job and returns its id
- ``poll(source_location, job_id)`` reports the job state and, once
  completed, the location of the signed archive

``LambdaSigningService`` invokes the codesign lambda through the aws CLI.
The lambda answers ``{"statusCode": 200, "body": {"build_number": ...,
"state": ..., "destination_url": ...}}``.
"""

from __future__ import annotations

import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from deskrel.core.result import Err, Ok, Result
from deskrel.core.structured import as_str_dict, get_int, get_str
from deskrel.platform.process import run as run_process

from ..timeouts import SIGNING_CALL_TIMEOUT_SECONDS

__all__ = [
    "SigningReply",
    "ServiceCallError",
    "SigningService",
    "LambdaSigningService",
    "parse_reply",
]


@dataclass(frozen=True, slots=True)
class SigningReply:
    status_code: int
    job_id: str | None = None
    state: str | None = None
    destination: str | None = None


@dataclass(frozen=True, slots=True)
class ServiceCallError:
    """The call itself failed (CLI missing, non-zero exit, unreadable reply)."""

    message: str


@runtime_checkable
class SigningService(Protocol):
    def submit(
        self, source_location: str, origin_ref: str
    ) -> Result[SigningReply, ServiceCallError]:
        ...

    def poll(self, source_location: str, job_id: str) -> Result[SigningReply, ServiceCallError]:
        ...


def parse_reply(payload: object) -> Result[SigningReply, ServiceCallError]:
    """Read a lambda reply. A string ``body`` is decoded as JSON first."""
    data = as_str_dict(payload)
    if data is None:
        return Err(ServiceCallError("signing reply is not a JSON object"))

    status = get_int(data, "statusCode")
    if status is None:
        return Err(ServiceCallError("signing reply has no statusCode"))

    body_obj = data.get("body")
    if isinstance(body_obj, str):
        try:
            body_obj = json.loads(body_obj)
        except json.JSONDecodeError:
            body_obj = None
    body = as_str_dict(body_obj) or {}

    job_id: str | None = get_str(body, "build_number")
    if job_id is None:
        number = get_int(body, "build_number")
        job_id = str(number) if number is not None else None

    return Ok(
        SigningReply(
            status_code=status,
            job_id=job_id,
            state=get_str(body, "state"),
            destination=get_str(body, "destination_url"),
        )
    )


class LambdaSigningService:
    def __init__(self, function: str, *, cwd: Path, region: str | None = None) -> None:
        self.function = function
        self._cwd = cwd
        self._region = region

    def submit(
        self, source_location: str, origin_ref: str
    ) -> Result[SigningReply, ServiceCallError]:
        return self._invoke({"source_s3_url": source_location, "source_job_url": origin_ref})

    def poll(self, source_location: str, job_id: str) -> Result[SigningReply, ServiceCallError]:
        return self._invoke({"source_s3_url": source_location, "build_number": job_id})

    def _invoke(self, payload: dict[str, str]) -> Result[SigningReply, ServiceCallError]:
        with tempfile.TemporaryDirectory(prefix="deskrel-") as tmp:
            out = Path(tmp) / "response.json"
            cmd = [
                "aws",
                "lambda",
                "invoke",
                "--function-name",
                self.function,
                "--cli-binary-format",
                "raw-in-base64-out",
                "--payload",
                json.dumps(payload),
            ]
            if self._region:
                cmd += ["--region", self._region]
            cmd.append(str(out))

            result = run_process(cmd, cwd=self._cwd, timeout=SIGNING_CALL_TIMEOUT_SECONDS)
            if isinstance(result, Err):
                e = result.error
                return Err(ServiceCallError(e.stderr.strip() or str(e)))

            try:
                obj: object = json.loads(out.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
                return Err(ServiceCallError(f"unreadable lambda response: {e}"))

        return parse_reply(obj)
