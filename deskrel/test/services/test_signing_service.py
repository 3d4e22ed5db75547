"""Tests for the signing service adapter and the object stores."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import deskrel.services.signing.service as service_mod
import deskrel.services.signing.store as store_mod
from deskrel.core.result import Err, Ok, Result
from deskrel.platform.process import ProcessError
from deskrel.services.signing import (
    LambdaSigningService,
    MemoryObjectStore,
    ObjectStore,
    S3ObjectStore,
    SigningReply,
    SigningService,
)
from deskrel.services.signing.service import ServiceCallError, parse_reply


class TestParseReply:
    def test_object_body(self) -> None:
        payload = {"statusCode": 200, "body": {"build_number": "12", "state": "submitted"}}
        assert parse_reply(payload) == Ok(
            SigningReply(status_code=200, job_id="12", state="submitted")
        )

    def test_string_body_is_decoded(self) -> None:
        body = json.dumps(
            {"build_number": 12, "state": "completed", "destination_url": "s3://b/signed.zip"}
        )
        assert parse_reply({"statusCode": 200, "body": body}) == Ok(
            SigningReply(
                status_code=200, job_id="12", state="completed", destination="s3://b/signed.zip"
            )
        )

    def test_error_status_without_body(self) -> None:
        assert parse_reply({"statusCode": 500}) == Ok(SigningReply(status_code=500))

    def test_undecodable_string_body(self) -> None:
        assert parse_reply({"statusCode": 502, "body": "Bad Gateway"}) == Ok(
            SigningReply(status_code=502)
        )

    @pytest.mark.parametrize("payload", [[], "x", {"body": {}}, {"statusCode": "200"}])
    def test_malformed(self, payload: object) -> None:
        assert isinstance(parse_reply(payload), Err)


class FakeAws:
    """Records aws CLI invocations and answers lambda calls through the output file."""

    def __init__(self, response: object | None = None, *, fail: bool = False) -> None:
        self.response = response
        self.fail = fail
        self.calls: list[list[str]] = []

    def __call__(
        self, cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cwd, env, timeout
        self.calls.append(cmd)
        if self.fail:
            return Err(
                ProcessError(command=tuple(cmd), returncode=255, stdout="", stderr="denied\n")
            )
        if cmd[:3] == ["aws", "lambda", "invoke"]:
            Path(cmd[-1]).write_text(json.dumps(self.response), encoding="utf-8")
        elif cmd[:3] == ["aws", "s3", "cp"] and not cmd[-1].startswith("s3://"):
            Path(cmd[-1]).write_bytes(b"signed")
        return Ok("")


class TestLambdaSigningService:
    def test_submit_payload(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        aws = FakeAws({"statusCode": 200, "body": {"build_number": "7"}})
        monkeypatch.setattr(service_mod, "run_process", aws)
        service = LambdaSigningService("codesign_helper", cwd=tmp_path, region="us-west-2")

        result = service.submit("s3://b/unsigned/x.zip", "https://ci/runs/1")

        assert result == Ok(SigningReply(status_code=200, job_id="7"))
        cmd = aws.calls[0]
        assert cmd[:5] == ["aws", "lambda", "invoke", "--function-name", "codesign_helper"]
        assert "raw-in-base64-out" in cmd
        assert cmd[cmd.index("--region") + 1] == "us-west-2"
        payload = json.loads(cmd[cmd.index("--payload") + 1])
        assert payload == {
            "source_s3_url": "s3://b/unsigned/x.zip",
            "source_job_url": "https://ci/runs/1",
        }

    def test_poll_payload(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        aws = FakeAws({"statusCode": 200, "body": {"state": "in_progress"}})
        monkeypatch.setattr(service_mod, "run_process", aws)

        result = LambdaSigningService("fn", cwd=tmp_path).poll("s3://b/u.zip", "7")

        assert result == Ok(SigningReply(status_code=200, state="in_progress"))
        payload = json.loads(aws.calls[0][aws.calls[0].index("--payload") + 1])
        assert payload == {"source_s3_url": "s3://b/u.zip", "build_number": "7"}
        assert "--region" not in aws.calls[0]

    def test_cli_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(service_mod, "run_process", FakeAws(fail=True))
        result = LambdaSigningService("fn", cwd=tmp_path).poll("s3://b/u.zip", "7")
        assert result == Err(ServiceCallError("denied"))

    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(LambdaSigningService("fn", cwd=tmp_path), SigningService)


class TestS3ObjectStore:
    def test_put(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        aws = FakeAws()
        monkeypatch.setattr(store_mod, "run_process", aws)

        result = S3ObjectStore("bucket", cwd=tmp_path).put("unsigned/a.zip", b"zip")

        assert result == Ok("s3://bucket/unsigned/a.zip")
        assert aws.calls[0][:4] == ["aws", "s3", "cp", "--quiet"]
        assert aws.calls[0][-1] == "s3://bucket/unsigned/a.zip"

    def test_get(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(store_mod, "run_process", FakeAws())
        result = S3ObjectStore("bucket", cwd=tmp_path).get("s3://bucket/signed/a.zip")
        assert result == Ok(b"signed")

    def test_failure_names_remote_location(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(store_mod, "run_process", FakeAws(fail=True))
        result = S3ObjectStore("bucket", cwd=tmp_path).put("k.zip", b"zip")
        assert isinstance(result, Err)
        assert result.error.location == "s3://bucket/k.zip"
        assert result.error.message == "denied"


class TestMemoryObjectStore:
    def test_put_overwrites_and_get(self) -> None:
        store = MemoryObjectStore()
        location = store.put("k", b"1")
        store.put("k", b"2")
        assert location == Ok("memory://k")
        assert store.get("memory://k") == Ok(b"2")
        assert store.puts == 2
        assert store.gets == 1

    def test_missing(self) -> None:
        assert isinstance(MemoryObjectStore().get("memory://nope"), Err)

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryObjectStore(), ObjectStore)
