"""Tests for the signing job state machine."""

from __future__ import annotations

import pytest

from deskrel.services.signing.machine import (
    DeadlineCheck,
    InvalidTransition,
    PollReply,
    SigningJob,
    SigningState,
    SubmitReply,
    UploadDone,
    advance,
    new_job,
)


def _submitted(deadline: float = 900.0, at: float = 100.0) -> SigningJob:
    job = advance(new_job(deadline), UploadDone(location="s3://bucket/unsigned/a.zip"))
    return advance(job, SubmitReply(status_code=200, job_id="17", at=at))


def _poll(
    at: float,
    state: str | None = "in_progress",
    *,
    status_code: int = 200,
    destination: str | None = None,
) -> PollReply:
    return PollReply(status_code=status_code, state=state, destination=destination, at=at)


class TestHappyPath:
    def test_upload_then_submit(self) -> None:
        job = _submitted()
        assert job.state == SigningState.SUBMITTED
        assert job.source_location == "s3://bucket/unsigned/a.zip"
        assert job.job_id == "17"
        assert job.submitted_at == 100.0

    def test_in_progress_then_completed(self) -> None:
        job = _submitted()
        for at in (130.0, 160.0, 190.0):
            job = advance(job, _poll(at))
            assert job.state == SigningState.POLLING
        job = advance(job, _poll(220.0, "completed", destination="s3://bucket/signed/a.zip"))

        assert job.state == SigningState.COMPLETED
        assert job.polls == 4
        assert job.elapsed == 120.0
        assert job.destination == "s3://bucket/signed/a.zip"


class TestSubmit:
    @pytest.mark.parametrize("status", [400, 403, 500, 0])
    def test_non_200_fails(self, status: int) -> None:
        job = advance(new_job(900), UploadDone(location="loc"))
        job = advance(job, SubmitReply(status_code=status, job_id="1", at=0.0))
        assert job.state == SigningState.FAILED
        assert job.failure == "submit"
        assert job.status_code == status

    def test_missing_job_id_fails(self) -> None:
        job = advance(new_job(900), UploadDone(location="loc"))
        job = advance(job, SubmitReply(status_code=200, job_id=None, at=0.0))
        assert job.state == SigningState.FAILED
        assert job.failure == "submit"


class TestPoll:
    def test_non_200_fails(self) -> None:
        job = advance(_submitted(), _poll(130.0, None, status_code=502))
        assert job.state == SigningState.FAILED
        assert job.failure == "poll"

    def test_remote_failed_state_is_job_failure(self) -> None:
        job = advance(_submitted(), _poll(130.0, "failed"))
        assert job.state == SigningState.FAILED
        assert job.failure == "job"
        assert job.remote_state == "failed"

    def test_completed_without_destination(self) -> None:
        job = advance(_submitted(), _poll(130.0, "completed"))
        assert job.state == SigningState.FAILED
        assert job.failure == "poll"

    def test_unknown_state_keeps_polling(self) -> None:
        job = advance(_submitted(), _poll(130.0, "queued"))
        assert job.state == SigningState.POLLING
        assert job.remote_state == "queued"


class TestDeadline:
    def test_elapsed_equal_to_deadline_times_out(self) -> None:
        job = _submitted(deadline=60.0, at=0.0)
        job = advance(job, _poll(30.0))
        assert job.state == SigningState.POLLING
        job = advance(job, _poll(60.0))
        assert job.state == SigningState.TIMED_OUT
        assert job.polls == 2

    def test_completed_at_deadline_still_completes(self) -> None:
        job = _submitted(deadline=60.0, at=0.0)
        job = advance(job, _poll(60.0, "completed", destination="loc"))
        assert job.state == SigningState.COMPLETED

    def test_elapsed_never_decreases(self) -> None:
        job = _submitted(at=0.0)
        job = advance(job, _poll(50.0))
        job = advance(job, _poll(40.0))
        assert job.elapsed == 50.0

    def test_deadline_check_event(self) -> None:
        job = _submitted(deadline=60.0, at=0.0)
        assert advance(job, DeadlineCheck(at=59.0)).state == SigningState.SUBMITTED
        assert advance(job, DeadlineCheck(at=61.0)).state == SigningState.TIMED_OUT


class TestTerminalAndInvalid:
    @pytest.mark.parametrize(
        "state", [SigningState.COMPLETED, SigningState.FAILED, SigningState.TIMED_OUT]
    )
    def test_terminal_jobs_are_frozen(self, state: SigningState) -> None:
        job = SigningJob(state=state, deadline=900)
        assert advance(job, _poll(1.0, "completed", destination="x")) is job
        assert advance(job, UploadDone(location="y")) is job

    def test_poll_before_submit(self) -> None:
        with pytest.raises(InvalidTransition):
            advance(new_job(900), _poll(1.0))

    def test_upload_twice(self) -> None:
        job = advance(new_job(900), UploadDone(location="a"))
        with pytest.raises(InvalidTransition):
            advance(job, UploadDone(location="b"))

    def test_terminal_states(self) -> None:
        assert SigningState.TIMED_OUT.is_terminal
        assert not SigningState.POLLING.is_terminal
