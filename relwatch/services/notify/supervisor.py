"""Crash supervisor for the release status message.

The release process starts `main` as a detached process
(`python -m relwatch.services.notify`) right after posting the pending
message. The supervisor holds a pre-rendered failure
attachment and watches its parent:

    STARTING -> WATCHING -> FINALIZING -> DONE
                    |                      ^
                    +---- stand-down ------+

- parent pid gone, SIGTERM or SIGINT: send the failure update once, exit 0.
- stand-down request (SIGUSR1) from the release process: the release process
  is about to write the real outcome itself; exit 0 without touching Slack.

Update errors are logged and never retried; the supervisor is a last resort.
"""

from __future__ import annotations

import os
import signal
import subprocess
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from time import sleep
from types import FrameType
from typing import Literal

from relwatch.core.errors import ErrorCode
from relwatch.core.result import Err, Ok, Result
from relwatch.output.console import ConsoleProtocol, RichConsole, Style
from relwatch.platform.detection import supports_process_signals
from relwatch.platform.process import pid_alive, request_exit, spawn_detached
from relwatch.services.notify.handoff import HANDOFF_ENV, SupervisorHandoff
from relwatch.services.notify.slack import RealSlackClient, SlackClient
from relwatch.services.notify.timeouts import PROBE_INTERVAL_SECONDS, STAND_DOWN_WAIT_SECONDS

SUPERVISOR_MODULE = "relwatch.services.notify"


class SupervisorState(Enum):
    STARTING = auto()
    WATCHING = auto()
    FINALIZING = auto()
    DONE = auto()

    def __str__(self) -> str:
        return self.name.lower()


class Supervisor:
    """Watch loop and finalization, independent of how signals arrive.

    Args:
        handoff: Everything needed for the failure update.
        client: Slack client bound to the handoff token.
        console: Log sink.
        parent_alive: Existence probe for `handoff.parent_pid`.
        sleep_fn: Waits between probes.
        interval: Seconds between probes.
    """

    def __init__(
        self,
        handoff: SupervisorHandoff,
        *,
        client: SlackClient,
        console: ConsoleProtocol,
        parent_alive: Callable[[int], bool] = pid_alive,
        sleep_fn: Callable[[float], None] = sleep,
        interval: float = PROBE_INTERVAL_SECONDS,
    ) -> None:
        self._handoff = handoff
        self._client = client
        self._console = console
        self._parent_alive = parent_alive
        self._sleep = sleep_fn
        self._interval = interval
        self._state = SupervisorState.STARTING
        self._finalize_reason: str | None = None
        self._stand_down = False
        self._updates = 0

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def updates_sent(self) -> int:
        return self._updates

    def request_finalize(self, reason: str) -> None:
        if self._finalize_reason is None:
            self._finalize_reason = reason

    def request_stand_down(self) -> None:
        self._stand_down = True

    def install_signal_handlers(self) -> None:
        """Route SIGTERM/SIGINT to finalization and SIGUSR1 to stand-down (POSIX only)."""

        def on_terminate(signum: int, _frame: FrameType | None) -> None:
            self.request_finalize(f"received {signal.Signals(signum).name}")

        def on_stand_down(_signum: int, _frame: FrameType | None) -> None:
            self.request_stand_down()

        signal.signal(signal.SIGTERM, on_terminate)
        signal.signal(signal.SIGINT, on_terminate)
        signal.signal(signal.SIGUSR1, on_stand_down)

    def _transition(self, state: SupervisorState, detail: str = "") -> None:
        self._state = state
        suffix = f" ({detail})" if detail else ""
        self._console.print(
            f"supervisor {self._handoff.generation}: {state}{suffix}",
            Style.DIM,
        )

    def run(self) -> int:
        """Watch until the parent disappears or a request arrives; return exit code."""
        self._transition(SupervisorState.WATCHING, f"parent pid {self._handoff.parent_pid}")

        reason: str
        while True:
            if self._stand_down:
                self._transition(SupervisorState.DONE, "stand-down")
                return int(ErrorCode.OK)
            if self._finalize_reason is not None:
                reason = self._finalize_reason
                break
            if not self._parent_alive(self._handoff.parent_pid):
                reason = "parent process exited"
                break
            self._sleep(self._interval)

        return self._finalize(reason)

    def _finalize(self, reason: str) -> int:
        # A stand-down that raced with the trigger wins: the release process
        # owns the final write.
        if self._stand_down:
            self._transition(SupervisorState.DONE, "stand-down")
            return int(ErrorCode.OK)

        self._transition(SupervisorState.FINALIZING, reason)
        h = self._handoff
        self._updates += 1
        result = self._client.update(h.channel_id, h.message_handle, h.failure_payload, h.identity)
        if isinstance(result, Err):
            self._console.error(f"failed to update Slack message {h.message_handle}: {result.error}")
        else:
            self._console.print(
                f"marked release of {h.package_name or 'package'} as failed",
                Style.WARNING,
            )

        self._transition(SupervisorState.DONE)
        return int(ErrorCode.OK)


@dataclass(frozen=True, slots=True)
class SupervisorError:
    kind: Literal["unsupported", "spawn_failed"]
    message: str
    hint: str | None = None


class SupervisorHandle:
    """The release process's side of a running supervisor."""

    def __init__(self, proc: subprocess.Popen[bytes], *, generation: str) -> None:
        self._proc = proc
        self._generation = generation

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def generation(self) -> str:
        return self._generation

    def stand_down(self, *, timeout: float = STAND_DOWN_WAIT_SECONDS) -> bool:
        """Ask the supervisor to exit without updating and wait for it.

        Returns:
            True if it exited on request, False if it had to be killed.
        """
        return request_exit(self._proc, signal.SIGUSR1, timeout=timeout)


def spawn_supervisor(
    handoff: SupervisorHandoff,
    *,
    environ: Mapping[str, str],
    log_path: Path | None = None,
) -> Result[SupervisorHandle, SupervisorError]:
    if not supports_process_signals():
        return Err(
            SupervisorError(
                kind="unsupported",
                message="crash supervisor needs POSIX signals",
                hint="The release message will not be finalized if this process dies.",
            )
        )

    env = dict(environ)
    env[HANDOFF_ENV] = handoff.to_json()
    cmd = [sys.executable, "-m", SUPERVISOR_MODULE]
    spawned = spawn_detached(cmd, env, log_path=log_path)
    if isinstance(spawned, Err):
        return Err(
            SupervisorError(
                kind="spawn_failed",
                message=f"failed to start crash supervisor: {spawned.error.message}",
            )
        )
    return Ok(SupervisorHandle(spawned.value, generation=handoff.generation))


def main(environ: Mapping[str, str] | None = None) -> int:
    console = RichConsole(stderr=True)
    loaded = SupervisorHandoff.from_env(os.environ if environ is None else environ)
    if isinstance(loaded, Err):
        console.error(loaded.error.message)
        return int(ErrorCode.ENV_ERROR)

    handoff = loaded.value
    supervisor = Supervisor(
        handoff,
        client=RealSlackClient(handoff.token),
        console=console,
    )
    supervisor.install_signal_handlers()
    return supervisor.run()

