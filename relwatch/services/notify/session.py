"""Lifecycle of one release's Slack status message.

A NotificationSession is built once per release and carries the channel,
the message handle and the supervisor between prepare, succeed and fail.

Ordering on the normal path: stand the supervisor down first, then write
the real outcome, so the release process always makes the last write.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from pathlib import Path

from relwatch.core.config import SlackSettings
from relwatch.core.result import Err, Ok, Result
from relwatch.output.console import ConsoleProtocol, Style
from relwatch.release.contracts import ReleaseArtifact
from relwatch.services.notify.handoff import SupervisorHandoff, new_generation
from relwatch.services.notify.model import Identity, NotificationState, Phase, ReleaseInfo
from relwatch.services.notify.render import render
from relwatch.services.notify.slack import ChannelError, SlackClient
from relwatch.services.notify.supervisor import SupervisorError, SupervisorHandle, spawn_supervisor

SupervisorSpawner = Callable[..., Result[SupervisorHandle, SupervisorError]]


class NotificationSession:
    def __init__(
        self,
        *,
        client: SlackClient,
        settings: SlackSettings,
        info: ReleaseInfo,
        console: ConsoleProtocol,
        spawner: SupervisorSpawner = spawn_supervisor,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._identity = Identity.from_settings(settings)
        self._info = info
        self._console = console
        self._spawner = spawner
        self._environ = environ
        self._state: NotificationState | None = None
        self._supervisor: SupervisorHandle | None = None

    @property
    def state(self) -> NotificationState | None:
        return self._state

    @property
    def supervisor(self) -> SupervisorHandle | None:
        return self._supervisor

    @property
    def finalized(self) -> bool:
        return self._state is not None and self._state.phase != "pending"

    def prepare(
        self,
        *,
        supervise: bool = True,
        log_path: Path | None = None,
    ) -> Result[str, ChannelError]:
        """Post the pending message and start the crash supervisor.

        A failed post does not stop the release, but nothing can be updated
        later, so it is reported loudly and no supervisor is started.
        """
        payload = render(self._info, "pending")
        channel = self._settings.channel_id

        self._console.info("Posting release start notification to Slack...")
        posted = self._client.post(channel, payload, self._identity)
        if isinstance(posted, Err):
            self._console.error(f"Slack post failed: {posted.error}")
            self._console.print(
                "hint: no message handle; the success/failure update will be skipped",
                Style.DIM,
            )
            return posted

        handle = posted.value
        self._state = NotificationState(
            channel_id=channel,
            message_handle=handle,
            phase="pending",
            payload=payload,
        )
        self._console.print(f"Posted to Slack, message timestamp: {handle}", Style.DIM)

        if supervise:
            self._start_supervisor(handle, log_path=log_path)
        return Ok(handle)

    def _start_supervisor(self, handle: str, *, log_path: Path | None) -> None:
        handoff = SupervisorHandoff(
            token=self._settings.token,
            channel_id=self._settings.channel_id,
            message_handle=handle,
            failure_payload=render(self._info, "failure"),
            identity=self._identity,
            parent_pid=os.getpid(),
            generation=new_generation(),
            package_name=self._info.package_name,
        )
        environ = os.environ if self._environ is None else self._environ
        spawned = self._spawner(handoff, environ=environ, log_path=log_path)
        if isinstance(spawned, Err):
            self._console.warning(spawned.error.message)
            if spawned.error.hint:
                self._console.print(f"hint: {spawned.error.hint}", Style.DIM)
            return

        self._supervisor = spawned.value
        self._console.print(
            f"crash supervisor {handoff.generation} running (pid {spawned.value.pid})",
            Style.DIM,
        )

    def _stop_supervisor(self) -> None:
        sup = self._supervisor
        if sup is None:
            return
        self._supervisor = None
        if not sup.stand_down():
            self._console.warning(f"crash supervisor {sup.generation} had to be killed")

    def succeed(self, artifacts: Iterable[ReleaseArtifact] = ()) -> bool:
        """Mark the release successful; `artifacts` are appended to known ones."""
        extra = tuple(artifacts)
        info = replace(self._info, artifacts=self._info.artifacts + extra)
        return self._finalize("success", info)

    def fail(self) -> bool:
        return self._finalize("failure", self._info)

    def _finalize(self, phase: Phase, info: ReleaseInfo) -> bool:
        self._stop_supervisor()

        state = self._state
        if state is None:
            self._console.warning(f"no Slack message to update; release {phase} not announced")
            return False
        if state.phase != "pending":
            # Exactly one terminal update per message.
            return state.phase == phase

        payload = render(info, phase)
        self._console.info(f"Posting release {phase} notification to Slack...")
        result = self._client.update(state.channel_id, state.message_handle, payload, self._identity)
        self._state = replace(state, phase=phase, payload=payload)
        if isinstance(result, Err):
            self._console.error(f"Slack update failed: {result.error}")
            return False

        self._console.success(f"Updated Slack message with release {phase}")
        return True
