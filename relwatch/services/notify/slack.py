"""Slack Web API client for the release status message.

This module provides:
- SlackClient: Protocol for posting and updating one message (injectable for tests)
- RealSlackClient: Real implementation using urllib
- MockSlackClient: Mock implementation for testing

Nothing here retries: a failed update is reported to the caller, which logs
it and moves on.
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from relwatch.core.result import Err, Ok, Result
from relwatch.core.structured import StrDict, as_str_dict, get_bool, get_str
from relwatch.services.notify.model import Identity, Payload
from relwatch.services.notify.timeouts import SLACK_TIMEOUT_SECONDS

__all__ = [
    "ChannelError",
    "MockSlackClient",
    "RealSlackClient",
    "SlackCall",
    "SlackClient",
    "SLACK_API_URL",
]

SLACK_API_URL = "https://slack.com/api"


@dataclass(frozen=True, slots=True)
class ChannelError:
    """Slack API failure.

    Attributes:
        method: Web API method (chat.postMessage, chat.update)
        message: Human-readable error message
        slack_error: The `error` code from a `{"ok": false}` response, if any
    """

    method: str
    message: str
    slack_error: str | None = None

    def __str__(self) -> str:
        if self.slack_error:
            return f"{self.method}: {self.message} ({self.slack_error})"
        return f"{self.method}: {self.message}"


@runtime_checkable
class SlackClient(Protocol):
    def post(
        self,
        channel_id: str,
        payload: Payload,
        identity: Identity,
    ) -> Result[str, ChannelError]:
        """Post a new message.

        Returns:
            Ok with the message handle (`ts`), or Err with ChannelError
        """
        ...

    def update(
        self,
        channel_id: str,
        message_handle: str,
        payload: Payload,
        identity: Identity,
    ) -> Result[None, ChannelError]:
        """Replace the attachment of an existing message (last write wins)."""
        ...


def message_body(
    channel_id: str,
    payload: Payload,
    identity: Identity,
    *,
    message_handle: str | None = None,
) -> StrDict:
    body: StrDict = {
        "channel": channel_id,
        "attachments": [payload],
        "unfurl_links": False,
        "unfurl_media": False,
    }
    if message_handle is not None:
        body["ts"] = message_handle
    if identity.username:
        body["username"] = identity.username
    if identity.icon_emoji:
        body["icon_emoji"] = identity.icon_emoji
    return body


class RealSlackClient:
    """Slack client using urllib and a bot token."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = SLACK_API_URL,
        timeout: float = SLACK_TIMEOUT_SECONDS,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._ssl_context = ssl.create_default_context()

    def _call(self, method: str, body: StrDict) -> Result[StrDict, ChannelError]:
        url = f"{self._base_url}/{method}"
        try:
            req = urllib.request.Request(
                url,
                data=json.dumps(body).encode("utf-8"),
                method="POST",
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json; charset=utf-8",
                },
            )
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            return Err(ChannelError(method=method, message=f"HTTP {e.code}: {e.reason}"))
        except urllib.error.URLError as e:
            return Err(ChannelError(method=method, message=str(e.reason)))
        except TimeoutError:
            return Err(ChannelError(method=method, message="request timed out"))
        except ValueError as e:
            return Err(ChannelError(method=method, message=f"invalid URL: {e}"))
        except OSError as e:
            return Err(ChannelError(method=method, message=str(e)))

        try:
            obj: object = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(ChannelError(method=method, message=f"JSON parse error: {e}"))

        data = as_str_dict(obj)
        if data is None:
            return Err(ChannelError(method=method, message="expected JSON object"))
        if get_bool(data, "ok") is not True:
            return Err(
                ChannelError(
                    method=method,
                    message="request rejected",
                    slack_error=get_str(data, "error") or "unknown_error",
                )
            )
        return Ok(data)

    def post(
        self,
        channel_id: str,
        payload: Payload,
        identity: Identity,
    ) -> Result[str, ChannelError]:
        result = self._call("chat.postMessage", message_body(channel_id, payload, identity))
        if isinstance(result, Err):
            return result

        ts = get_str(result.value, "ts")
        if ts is None:
            return Err(ChannelError(method="chat.postMessage", message="response has no ts"))
        return Ok(ts)

    def update(
        self,
        channel_id: str,
        message_handle: str,
        payload: Payload,
        identity: Identity,
    ) -> Result[None, ChannelError]:
        body = message_body(channel_id, payload, identity, message_handle=message_handle)
        result = self._call("chat.update", body)
        if isinstance(result, Err):
            return result
        return Ok(None)


@dataclass(frozen=True, slots=True)
class SlackCall:
    method: str
    channel_id: str
    payload: Payload
    identity: Identity
    message_handle: str | None = None


def _empty_calls() -> list[SlackCall]:
    return []


@dataclass
class MockSlackClient:
    """Mock Slack client for testing.

    Usage:
        client = MockSlackClient(handle="1700000000.000100")
        client.post("C123", payload, Identity())
        assert client.updates == []
    """

    handle: str = "1700000000.000100"
    post_error: ChannelError | None = None
    update_error: ChannelError | None = None
    calls: list[SlackCall] = field(default_factory=_empty_calls)

    def post(
        self,
        channel_id: str,
        payload: Payload,
        identity: Identity,
    ) -> Result[str, ChannelError]:
        self.calls.append(SlackCall("chat.postMessage", channel_id, payload, identity))
        if self.post_error is not None:
            return Err(self.post_error)
        return Ok(self.handle)

    def update(
        self,
        channel_id: str,
        message_handle: str,
        payload: Payload,
        identity: Identity,
    ) -> Result[None, ChannelError]:
        self.calls.append(
            SlackCall("chat.update", channel_id, payload, identity, message_handle=message_handle)
        )
        if self.update_error is not None:
            return Err(self.update_error)
        return Ok(None)

    @property
    def posts(self) -> list[SlackCall]:
        return [c for c in self.calls if c.method == "chat.postMessage"]

    @property
    def updates(self) -> list[SlackCall]:
        return [c for c in self.calls if c.method == "chat.update"]
