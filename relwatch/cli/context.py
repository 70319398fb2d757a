from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relwatch.core.config import ReleaseEnv, load_release_env
from relwatch.core.errors import ErrorCode
from relwatch.core.result import Err
from relwatch.output.console import ConsoleProtocol, RichConsole, Style


@dataclass(frozen=True, slots=True)
class CLIContext:
    cwd: Path
    env: ReleaseEnv
    console: ConsoleProtocol


def build_context(*, stderr: bool = False) -> CLIContext:
    """Read the release environment once and build the console.

    Args:
        stderr: Send console output to stderr, keeping stdout for JSON.
    """
    console = RichConsole(stderr=stderr)
    env_result = load_release_env(os.environ)
    if isinstance(env_result, Err):
        console.error(env_result.error.message)
        if env_result.error.hint:
            console.print(f"hint: {env_result.error.hint}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(cwd=Path.cwd(), env=env_result.value, console=console)
