"""Subprocess execution and detached process control.

`run` wraps subprocess.run and returns structured errors instead of
requiring try/except blocks at call sites. The remaining helpers cover the
primitives the notification supervisor depends on: launching a detached
child with its own environment, probing whether a pid still exists, and
asking a child to exit.

Usage:
    result = run(["aws", "--version"], cwd=Path("."))
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from relwatch.core.result import Err, Ok, Result

__all__ = [
    "ProcessError",
    "SpawnError",
    "pid_alive",
    "request_exit",
    "run",
    "spawn_detached",
]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 when it never ran).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


@dataclass(frozen=True, slots=True)
class SpawnError:
    command: tuple[str, ...]
    message: str


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


def spawn_detached(
    cmd: list[str],
    env: dict[str, str],
    *,
    cwd: Path | None = None,
    log_path: Path | None = None,
) -> Result[subprocess.Popen[bytes], SpawnError]:
    """Launch `cmd` in its own session so it outlives the caller.

    stdin is always disconnected. stdout/stderr go to `log_path` (appended)
    when given, otherwise to devnull.
    """
    try:
        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            with log_path.open("ab") as log:
                proc = subprocess.Popen(
                    cmd,
                    cwd=str(cwd) if cwd else None,
                    env=env,
                    stdin=subprocess.DEVNULL,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    start_new_session=True,
                    close_fds=True,
                )
        else:
            proc = subprocess.Popen(
                cmd,
                cwd=str(cwd) if cwd else None,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
                close_fds=True,
            )
    except OSError as e:
        return Err(SpawnError(command=tuple(cmd), message=str(e)))

    return Ok(proc)


def pid_alive(pid: int) -> bool:
    """Existence probe: signal 0 is checked by the kernel, never delivered."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by someone else.
        return True
    return True


def request_exit(
    proc: subprocess.Popen[bytes],
    sig: int,
    *,
    timeout: float,
) -> bool:
    """Send `sig` and wait up to `timeout` seconds for the process to exit.

    Falls back to SIGKILL when the process does not exit in time.

    Returns:
        True if the process exited on its own after `sig`, False if it had
        to be killed or could not be signalled.
    """
    if proc.poll() is not None:
        return True

    try:
        proc.send_signal(sig)
    except OSError:
        return False

    try:
        proc.wait(timeout=timeout)
        return True
    except subprocess.TimeoutExpired:
        pass

    try:
        proc.kill()
    except OSError:
        return False
    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        return False
    return False

