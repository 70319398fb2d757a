from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relwatch.core.config import CiSettings, SlackSettings
from relwatch.release.contracts import ReleaseArtifact

Phase = Literal["pending", "success", "failure"]
PHASES: tuple[Phase, ...] = ("pending", "success", "failure")

# A fully rendered Slack attachment; no lookups are needed to send it again.
Payload = dict[str, object]


@dataclass(frozen=True, slots=True)
class Identity:
    """Bot display identity, passed through unchanged on every API call."""

    username: str | None = None
    icon_emoji: str | None = None

    @classmethod
    def from_settings(cls, settings: SlackSettings) -> Identity:
        return cls(username=settings.username, icon_emoji=settings.icon_emoji)


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """Everything the renderer needs about the release being announced."""

    package_name: str
    version: str | None
    commit_title: str
    ci: CiSettings
    artifacts: tuple[ReleaseArtifact, ...] = ()


@dataclass(frozen=True, slots=True)
class ReleaseLink:
    text: str
    url: str

    def mrkdwn(self) -> str:
        return f"<{self.url}|{self.text}>"


@dataclass(frozen=True, slots=True)
class NotificationState:
    channel_id: str
    message_handle: str
    phase: Phase
    payload: Payload
