from __future__ import annotations

import json
from pathlib import Path

import typer

from relwatch.cli.commands._helpers import exit_with_code, load_artifacts
from relwatch.cli.context import build_context
from relwatch.core.errors import ErrorCode
from relwatch.services.notify.model import PHASES, Phase, ReleaseInfo
from relwatch.services.notify.render import render


def _parse_phase(value: str) -> Phase | None:
    for phase in PHASES:
        if value == phase:
            return phase
    return None


def render_message(
    phase: str = typer.Option(..., "--phase", help="pending|success|failure"),
    package: str = typer.Option(..., "--package", help="Package name"),
    version: str | None = typer.Option(None, "--version", help="Version being released"),
    commit_title: str = typer.Option("", "--commit-title", help="Title of the released commit"),
    artifacts: Path | None = typer.Option(
        None, "--artifacts", help="JSON file with prior release records"
    ),
) -> None:
    """Print the Slack attachment for a phase without sending it."""
    ctx = build_context(stderr=True)

    parsed = _parse_phase(phase)
    if parsed is None:
        ctx.console.error(f"invalid --phase: {phase} (expected {'|'.join(PHASES)})")
        exit_with_code(int(ErrorCode.USER_ERROR))

    info = ReleaseInfo(
        package_name=package,
        version=version,
        commit_title=commit_title,
        ci=ctx.env.ci,
        artifacts=load_artifacts(artifacts, ctx),
    )
    typer.echo(json.dumps(render(info, parsed), indent=2, ensure_ascii=False))
