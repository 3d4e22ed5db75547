"""Signing job state machine.

``advance(job, event)`` is a pure function: it never performs I/O and never
reads the clock. The client feeds it one event per network call and stops
once the job reaches a terminal state.

    idle --UploadDone--> uploaded --SubmitReply--> submitted
    submitted/polling --PollReply--> polling | completed | failed | timed_out
    submitted/polling --DeadlineCheck--> unchanged | timed_out
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Literal

__all__ = [
    "SigningState",
    "SigningJob",
    "UploadDone",
    "SubmitReply",
    "PollReply",
    "DeadlineCheck",
    "SigningEvent",
    "InvalidTransition",
    "COMPLETED_STATE",
    "FAILED_STATE",
    "SUCCESS_STATUS",
    "new_job",
    "advance",
]

SUCCESS_STATUS = 200
COMPLETED_STATE = "completed"
FAILED_STATE = "failed"


class SigningState(StrEnum):
    IDLE = "idle"
    UPLOADED = "uploaded"
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (SigningState.COMPLETED, SigningState.FAILED, SigningState.TIMED_OUT)


FailureKind = Literal["submit", "poll", "job"]


@dataclass(frozen=True, slots=True)
class SigningJob:
    """Snapshot of one signing request.

    Attributes:
        state: Local state machine state.
        deadline: Seconds allowed between submission and completion.
        source_location: Where the unsigned archive was uploaded.
        job_id: Identifier assigned by the service on submit.
        remote_state: Last job state token reported by the service.
        status_code: Last status code returned by the service.
        submitted_at: Clock reading when the submit reply arrived.
        elapsed: Seconds since submission at the last poll (never decreases).
        polls: Number of poll replies applied.
        destination: Signed object location, once completed.
        failure: Which step failed, when state is FAILED.
        detail: Service-provided or transport error text.
    """

    state: SigningState
    deadline: float
    source_location: str | None = None
    job_id: str | None = None
    remote_state: str | None = None
    status_code: int | None = None
    submitted_at: float | None = None
    elapsed: float = 0.0
    polls: int = 0
    destination: str | None = None
    failure: FailureKind | None = None
    detail: str = ""


@dataclass(frozen=True, slots=True)
class UploadDone:
    location: str


@dataclass(frozen=True, slots=True)
class SubmitReply:
    status_code: int
    job_id: str | None
    at: float
    detail: str = ""


@dataclass(frozen=True, slots=True)
class PollReply:
    status_code: int
    state: str | None
    destination: str | None
    at: float
    detail: str = ""


@dataclass(frozen=True, slots=True)
class DeadlineCheck:
    """Clock reading taken outside a poll (e.g. before sleeping again)."""

    at: float


SigningEvent = UploadDone | SubmitReply | PollReply | DeadlineCheck


class InvalidTransition(ValueError):
    """An event arrived in a state that cannot accept it."""

    def __init__(self, state: SigningState, event: SigningEvent) -> None:
        super().__init__(f"{type(event).__name__} is not valid in state {state}")
        self.state = state
        self.event = event


def new_job(deadline: float) -> SigningJob:
    return SigningJob(state=SigningState.IDLE, deadline=deadline)


def advance(job: SigningJob, event: SigningEvent) -> SigningJob:
    """Apply one event. Terminal jobs are returned unchanged.

    Raises:
        InvalidTransition: The event does not belong to the current state.
    """
    if job.state.is_terminal:
        return job

    match event:
        case UploadDone(location=location) if job.state == SigningState.IDLE:
            return replace(job, state=SigningState.UPLOADED, source_location=location)

        case SubmitReply() if job.state == SigningState.UPLOADED:
            return _on_submit(job, event)

        case PollReply() if job.state in (SigningState.SUBMITTED, SigningState.POLLING):
            return _on_poll(job, event)

        case DeadlineCheck() if job.state in (SigningState.SUBMITTED, SigningState.POLLING):
            return _on_deadline_check(job, event)

        case _:
            raise InvalidTransition(job.state, event)


def _on_submit(job: SigningJob, event: SubmitReply) -> SigningJob:
    if event.status_code != SUCCESS_STATUS:
        return replace(
            job,
            state=SigningState.FAILED,
            status_code=event.status_code,
            failure="submit",
            detail=event.detail or f"unexpected status code {event.status_code}",
        )
    if not event.job_id:
        return replace(
            job,
            state=SigningState.FAILED,
            status_code=event.status_code,
            failure="submit",
            detail=event.detail or "no job identifier in submit reply",
        )
    return replace(
        job,
        state=SigningState.SUBMITTED,
        status_code=event.status_code,
        job_id=event.job_id,
        submitted_at=event.at,
    )


def _on_poll(job: SigningJob, event: PollReply) -> SigningJob:
    started = job.submitted_at if job.submitted_at is not None else event.at
    polled = replace(
        job,
        status_code=event.status_code,
        remote_state=event.state,
        elapsed=max(job.elapsed, event.at - started),
        polls=job.polls + 1,
    )

    if event.status_code != SUCCESS_STATUS:
        return replace(
            polled,
            state=SigningState.FAILED,
            failure="poll",
            detail=event.detail or f"unexpected status code {event.status_code}",
        )

    if event.state == COMPLETED_STATE:
        if not event.destination:
            return replace(
                polled,
                state=SigningState.FAILED,
                failure="poll",
                detail="completed without a destination location",
            )
        return replace(polled, state=SigningState.COMPLETED, destination=event.destination)

    if event.state == FAILED_STATE:
        return replace(
            polled,
            state=SigningState.FAILED,
            failure="job",
            detail=event.detail or "signing service reported the job as failed",
        )

    if polled.elapsed >= job.deadline:
        return replace(polled, state=SigningState.TIMED_OUT)

    return replace(polled, state=SigningState.POLLING)


def _on_deadline_check(job: SigningJob, event: DeadlineCheck) -> SigningJob:
    started = job.submitted_at if job.submitted_at is not None else event.at
    checked = replace(job, elapsed=max(job.elapsed, event.at - started))
    if checked.elapsed >= job.deadline:
        return replace(checked, state=SigningState.TIMED_OUT)
    return checked
