"""Exit codes for the release pipeline.

One code per failing stage, so the invoking CI runner can tell which part of
the release broke from the exit status alone.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are part of the CLI contract.

    - 0: Success
    - 1: User error (bad arguments)
    - 2: Environment error (missing tool, invalid config)
    - 3: Build error (toolchain failure)
    - 4: Bundle error (packaging tool failure after retries)
    - 5: Signing error (submit, poll, job failure, timeout, transfer)
    - 6: Publish error (artifact store or smoke test)
    - 7: I/O error (expected file missing)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    BUNDLE_ERROR = 4
    SIGNING_ERROR = 5
    PUBLISH_ERROR = 6
    IO_ERROR = 7

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
