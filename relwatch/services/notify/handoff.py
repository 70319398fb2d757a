"""By-value state handed from the release process to its supervisor.

The whole payload travels as one JSON environment variable set at spawn
time. The supervisor never looks at the release process again except to
probe whether its pid still exists.
"""

from __future__ import annotations

import json
import secrets
from collections.abc import Mapping
from dataclasses import dataclass

from relwatch.core.result import Err, Ok, Result
from relwatch.core.structured import as_str_dict, get_int, get_str, get_table
from relwatch.services.notify.model import Identity, Payload

HANDOFF_ENV = "RELWATCH_SUPERVISOR_HANDOFF"


@dataclass(frozen=True, slots=True)
class HandoffError:
    message: str


@dataclass(frozen=True, slots=True)
class SupervisorHandoff:
    """Failure update the supervisor sends if the release process vanishes.

    Attributes:
        token: Slack bot token used for the update.
        channel_id: Channel holding the release message.
        message_handle: `ts` of the pending message; the only update target.
        failure_payload: Pre-rendered failure attachment.
        identity: Bot display identity.
        parent_pid: Pid of the release process to watch.
        generation: Random id tying supervisor log lines to one release.
        package_name: For log lines only.
    """

    token: str
    channel_id: str
    message_handle: str
    failure_payload: Payload
    identity: Identity
    parent_pid: int
    generation: str
    package_name: str = ""

    def to_json(self) -> str:
        return json.dumps(
            {
                "token": self.token,
                "channel_id": self.channel_id,
                "message_handle": self.message_handle,
                "failure_payload": self.failure_payload,
                "identity": {
                    "username": self.identity.username,
                    "icon_emoji": self.identity.icon_emoji,
                },
                "parent_pid": self.parent_pid,
                "generation": self.generation,
                "package_name": self.package_name,
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, text: str) -> Result[SupervisorHandoff, HandoffError]:
        try:
            obj: object = json.loads(text)
        except json.JSONDecodeError as e:
            return Err(HandoffError(f"handoff is not valid JSON: {e}"))

        data = as_str_dict(obj)
        if data is None:
            return Err(HandoffError("handoff must be a JSON object"))

        token = get_str(data, "token")
        channel_id = get_str(data, "channel_id")
        handle = get_str(data, "message_handle")
        payload = get_table(data, "failure_payload")
        parent_pid = get_int(data, "parent_pid")
        if token is None or channel_id is None or handle is None:
            return Err(HandoffError("handoff missing token, channel_id or message_handle"))
        if payload is None or parent_pid is None:
            return Err(HandoffError("handoff missing failure_payload or parent_pid"))

        ident = get_table(data, "identity") or {}
        return Ok(
            cls(
                token=token,
                channel_id=channel_id,
                message_handle=handle,
                failure_payload=payload,
                identity=Identity(
                    username=get_str(ident, "username"),
                    icon_emoji=get_str(ident, "icon_emoji"),
                ),
                parent_pid=parent_pid,
                generation=get_str(data, "generation") or "",
                package_name=get_str(data, "package_name") or "",
            )
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> Result[SupervisorHandoff, HandoffError]:
        raw = environ.get(HANDOFF_ENV)
        if not raw:
            return Err(HandoffError(f"{HANDOFF_ENV} is not set"))
        return cls.from_json(raw)


def new_generation() -> str:
    return secrets.token_hex(6)
