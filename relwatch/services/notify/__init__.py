"""Slack release status message with a crash supervisor."""

from .model import Identity, NotificationState, Phase, ReleaseInfo, ReleaseLink
from .render import extract_pr_number, render
from .session import NotificationSession
from .slack import ChannelError, MockSlackClient, RealSlackClient, SlackClient
from .supervisor import Supervisor, SupervisorHandle, SupervisorState, spawn_supervisor

__all__ = [
    "ChannelError",
    "Identity",
    "MockSlackClient",
    "NotificationSession",
    "NotificationState",
    "Phase",
    "RealSlackClient",
    "ReleaseInfo",
    "ReleaseLink",
    "SlackClient",
    "Supervisor",
    "SupervisorHandle",
    "SupervisorState",
    "extract_pr_number",
    "render",
    "spawn_supervisor",
]
