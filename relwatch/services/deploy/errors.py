from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

DeployErrorKind = Literal[
    "aws_missing",
    "start_failed",
    "query_failed",
    "invalid_response",
    "poll_timeout",
]


@dataclass(frozen=True, slots=True)
class DeployError:
    kind: DeployErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
