from __future__ import annotations

import json
from pathlib import Path

import typer

from relwatch.cli.commands._helpers import exit_with_code, load_artifacts
from relwatch.cli.context import build_context
from relwatch.core.errors import ErrorCode
from relwatch.core.result import Err
from relwatch.release.flow import DeployTarget, ReleaseRequest, run_release
from relwatch.services.deploy.amplify import AmplifyCli, DeploymentProvider, ensure_aws_available
from relwatch.services.deploy.model import DEFAULT_BRANCH
from relwatch.services.deploy.timeouts import POLL_INTERVAL_SECONDS, POLL_MAX_ATTEMPTS
from relwatch.services.notify.slack import RealSlackClient, SlackClient


def release(
    package: str = typer.Option(..., "--package", help="Package name"),
    version: str | None = typer.Option(None, "--version", help="Version being released"),
    commit_id: str = typer.Option(..., "--commit-id", help="Commit being released"),
    commit_title: str = typer.Option(..., "--commit-title", help="Title of that commit"),
    artifacts: Path | None = typer.Option(
        None, "--artifacts", help="JSON file with prior release records"
    ),
    target_id: str | None = typer.Option(None, "--target-id", help="Amplify app id to deploy"),
    target_name: str | None = typer.Option(None, "--target-name", help="Display name of the app"),
    branch: str = typer.Option(DEFAULT_BRANCH, "--branch", help="Amplify branch"),
    region: str | None = typer.Option(None, "--region", help="AWS region override"),
    supervise: bool = typer.Option(
        True, "--supervise/--no-supervise", help="Finalize the message if this process dies"
    ),
    supervisor_log: Path | None = typer.Option(
        None, "--supervisor-log", help="Append crash supervisor output to this file"
    ),
    poll_interval: float = typer.Option(
        POLL_INTERVAL_SECONDS, "--poll-interval", help="Seconds between status checks"
    ),
    max_polls: int = typer.Option(
        POLL_MAX_ATTEMPTS, "--max-polls", help="Status checks before giving up"
    ),
) -> None:
    """Announce a release in Slack, deploy it, and report the outcome."""
    ctx = build_context()

    if (target_id is None) != (target_name is None):
        ctx.console.error("--target-id and --target-name must be given together")
        exit_with_code(int(ErrorCode.USER_ERROR))

    target: DeployTarget | None = None
    provider: DeploymentProvider | None = None
    if target_id is not None and target_name is not None:
        aws = ensure_aws_available()
        if isinstance(aws, Err):
            ctx.console.error(aws.error.pretty())
            exit_with_code(int(ErrorCode.ENV_ERROR))
        target = DeployTarget(target_id=target_id, target_name=target_name, branch_name=branch)
        provider = AmplifyCli(cwd=ctx.cwd, region=region)

    client: SlackClient | None = None
    if ctx.env.slack is not None:
        client = RealSlackClient(ctx.env.slack.token)

    request = ReleaseRequest(
        package_name=package,
        version=version,
        commit_id=commit_id,
        commit_title=commit_title,
        artifacts=load_artifacts(artifacts, ctx),
        target=target,
        supervise=supervise,
        supervisor_log=supervisor_log,
        poll_interval=poll_interval,
        poll_max_attempts=max_polls,
    )
    outcome = run_release(
        request,
        env=ctx.env,
        console=ctx.console,
        provider=provider,
        client=client,
    )

    if not outcome.success:
        ctx.console.error(outcome.summary)
        exit_with_code(int(ErrorCode.DEPLOY_ERROR))

    ctx.console.success(outcome.summary)
    for artifact in outcome.artifacts:
        ctx.console.print(json.dumps(artifact.as_dict()))
