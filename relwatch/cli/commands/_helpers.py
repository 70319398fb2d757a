"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from relwatch.cli.context import CLIContext
from relwatch.core.errors import ErrorCode
from relwatch.core.result import Err
from relwatch.output.console import Style
from relwatch.release.contracts import ReleaseArtifact, parse_artifacts


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)


def load_artifacts(path: Path | None, ctx: CLIContext) -> tuple[ReleaseArtifact, ...]:
    """Read prior release records from a JSON file, or none without a path."""
    if path is None:
        return ()

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        ctx.console.error(f"cannot read artifacts file: {e}")
        exit_with_code(int(ErrorCode.USER_ERROR))

    parsed = parse_artifacts(text)
    if isinstance(parsed, Err):
        ctx.console.error(f"invalid artifacts file {path}: {parsed.error}")
        ctx.console.print('hint: expected [{"name": "...", "url": "..."}, ...]', Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))
    return parsed.value
