"""Cross-layer contracts for the release bounded context."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass

from relwatch.core.result import Err, Ok, Result
from relwatch.core.structured import as_obj_list, as_str_dict, get_str


@dataclass(frozen=True, slots=True)
class ReleaseArtifact:
    """A release already published by an earlier pipeline step.

    Only `name` and `url` matter; any other fields of the source record
    (channel, type, git tag...) are dropped on parse.
    """

    name: str | None = None
    url: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> ReleaseArtifact:
        return cls(name=get_str(data, "name"), url=get_str(data, "url"))

    def as_dict(self) -> dict[str, str]:
        out: dict[str, str] = {}
        if self.name:
            out["name"] = self.name
        if self.url:
            out["url"] = self.url
        return out


def parse_artifacts(text: str) -> Result[tuple[ReleaseArtifact, ...], str]:
    """Parse a JSON array of release records (semantic-release `releases`)."""
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(f"invalid JSON: {e}")

    items = as_obj_list(obj)
    if items is None:
        return Err("expected a JSON array of release objects")

    artifacts: list[ReleaseArtifact] = []
    for item in items:
        d = as_str_dict(item)
        if d is None:
            continue
        artifacts.append(ReleaseArtifact.from_mapping(d))
    return Ok(tuple(artifacts))


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    """Result of an orchestrated release, rendered by the CLI."""

    success: bool
    summary: str
    artifacts: tuple[ReleaseArtifact, ...] = ()
    notified: bool = False
