"""Release orchestration: announce, deploy, finalize.

prepare (pending message + supervisor) -> deploy -> succeed / fail.
The terminal update runs in a `finally` so an exception in the release work
still marks the message as failed before it propagates.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relwatch.core.config import ReleaseEnv
from relwatch.output.console import ConsoleProtocol
from relwatch.release.contracts import ReleaseArtifact, ReleaseOutcome
from relwatch.services.deploy.amplify import DeploymentProvider
from relwatch.services.deploy.model import DEFAULT_BRANCH
from relwatch.services.deploy.poller import deploy_to_remote
from relwatch.services.deploy.timeouts import POLL_INTERVAL_SECONDS, POLL_MAX_ATTEMPTS
from relwatch.services.notify.model import ReleaseInfo
from relwatch.services.notify.session import NotificationSession, SupervisorSpawner
from relwatch.services.notify.slack import SlackClient
from relwatch.services.notify.supervisor import spawn_supervisor


@dataclass(frozen=True, slots=True)
class DeployTarget:
    target_id: str
    target_name: str
    branch_name: str = DEFAULT_BRANCH


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """Plain inputs from the pipeline; git and versioning are resolved upstream."""

    package_name: str
    version: str | None
    commit_id: str
    commit_title: str
    artifacts: tuple[ReleaseArtifact, ...] = ()
    target: DeployTarget | None = None
    supervise: bool = True
    supervisor_log: Path | None = None
    poll_interval: float = POLL_INTERVAL_SECONDS
    poll_max_attempts: int = POLL_MAX_ATTEMPTS


def run_release(
    request: ReleaseRequest,
    *,
    env: ReleaseEnv,
    console: ConsoleProtocol,
    provider: DeploymentProvider | None,
    client: SlackClient | None,
    spawner: SupervisorSpawner = spawn_supervisor,
) -> ReleaseOutcome:
    console.header(f"Release {request.package_name} v{request.version or '?'}")

    info = ReleaseInfo(
        package_name=request.package_name,
        version=request.version,
        commit_title=request.commit_title,
        ci=env.ci,
        artifacts=request.artifacts,
    )

    session: NotificationSession | None = None
    if env.slack is not None and client is not None:
        session = NotificationSession(
            client=client,
            settings=env.slack,
            info=info,
            console=console,
            spawner=spawner,
        )
        session.prepare(supervise=request.supervise, log_path=request.supervisor_log)
    else:
        console.warning("Slack not configured; release will not be announced")

    succeeded = False
    summary = f"released {request.package_name}"
    published: list[ReleaseArtifact] = []
    try:
        target = request.target
        if target is not None and provider is not None:
            result = deploy_to_remote(
                provider,
                target_id=target.target_id,
                target_name=target.target_name,
                commit_id=request.commit_id,
                reason=request.commit_title,
                console=console,
                branch_name=target.branch_name,
                interval=request.poll_interval,
                max_attempts=request.poll_max_attempts,
            )
            if result.ok:
                published.append(result.as_artifact())
            else:
                summary = f"deployment failed for {target.target_name}"
            succeeded = result.ok
        else:
            succeeded = True
    finally:
        notified = False
        if session is not None:
            notified = session.succeed(published) if succeeded else session.fail()

    return ReleaseOutcome(
        success=succeeded,
        summary=summary,
        artifacts=tuple(published),
        notified=notified,
    )
