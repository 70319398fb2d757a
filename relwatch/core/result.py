"""Result type for explicit error handling.

Operations that talk to the deployment provider, the chat API or the OS
return a Result instead of raising, so callers decide at each boundary
whether a failure is fatal, logged, or converted into a structured outcome.

Usage:
    match start_deployment(provider, target_id="d1", ...):
        case Ok(job_id):
            console.info(f"job {job_id}")
        case Err(error):
            console.error(error.message)

Call sites narrow with `isinstance(result, Err)` or a `match` statement.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result holding `value`."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result holding `error`."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
