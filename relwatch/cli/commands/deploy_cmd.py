from __future__ import annotations

import json

import typer

from relwatch.cli.commands._helpers import exit_with_code
from relwatch.cli.context import build_context
from relwatch.core.errors import ErrorCode
from relwatch.core.result import Err
from relwatch.services.deploy.amplify import AmplifyCli, ensure_aws_available
from relwatch.services.deploy.model import DEFAULT_BRANCH
from relwatch.services.deploy.poller import deploy_to_remote
from relwatch.services.deploy.timeouts import POLL_INTERVAL_SECONDS, POLL_MAX_ATTEMPTS


def deploy(
    target_id: str = typer.Option(..., "--target-id", help="Amplify app id"),
    target_name: str = typer.Option(..., "--target-name", help="Display name of the app"),
    commit_id: str = typer.Option(..., "--commit-id", help="Commit to deploy"),
    reason: str = typer.Option(..., "--reason", help="Job reason (usually the commit title)"),
    branch: str = typer.Option(DEFAULT_BRANCH, "--branch", help="Amplify branch"),
    region: str | None = typer.Option(None, "--region", help="AWS region override"),
    poll_interval: float = typer.Option(
        POLL_INTERVAL_SECONDS, "--poll-interval", help="Seconds between status checks"
    ),
    max_polls: int = typer.Option(
        POLL_MAX_ATTEMPTS, "--max-polls", help="Status checks before giving up"
    ),
) -> None:
    """Start an Amplify release job, wait for it, print the release record as JSON."""
    ctx = build_context(stderr=True)

    aws = ensure_aws_available()
    if isinstance(aws, Err):
        ctx.console.error(aws.error.pretty())
        exit_with_code(int(ErrorCode.ENV_ERROR))

    result = deploy_to_remote(
        AmplifyCli(cwd=ctx.cwd, region=region),
        target_id=target_id,
        target_name=target_name,
        commit_id=commit_id,
        reason=reason,
        console=ctx.console,
        branch_name=branch,
        interval=poll_interval,
        max_attempts=max_polls,
    )
    if not result.ok:
        exit_with_code(int(ErrorCode.DEPLOY_ERROR))

    typer.echo(json.dumps(result.as_artifact().as_dict()))
