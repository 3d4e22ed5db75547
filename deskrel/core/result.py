"""Ok/Err values returned by every pipeline stage.

A stage never raises for an expected failure; the pipeline matches on the
outcome and decides whether to stop, print or map it to an exit code.

    match builder.build(spec):
        case Ok(binaries):
            ...
        case Err(error):
            print_pipeline_error(error, console)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeGuard


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T

    def unwrap(self) -> T:
        return self.value

    def map_err[E, F](self, f: Callable[[E], F]) -> Ok[T]:
        return self


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E

    def unwrap(self) -> None:
        """Always raises: reaching for the value of a failed stage is a bug."""
        raise ValueError(f"called unwrap on Err: {self.error}")

    def map_err[F](self, f: Callable[[E], F]) -> Err[F]:
        """Rewrap the error, e.g. a store failure into a signing failure."""
        return Err(f(self.error))


type Result[T, E] = Ok[T] | Err[E]


def is_ok[T, E](result: Result[T, E]) -> TypeGuard[Ok[T]]:
    return isinstance(result, Ok)


def is_err[T, E](result: Result[T, E]) -> TypeGuard[Err[E]]:
    return isinstance(result, Err)
