"""Drive an Amplify release job to a terminal status.

`deploy_to_remote` is the boundary: whatever goes wrong below it (start
failure, malformed payloads, exhausted poll budget, an unexpected exception
from a provider) comes out as a DeployResult with status "failure" and a
console message, never as an exception.
"""

from __future__ import annotations

from dataclasses import replace
from time import sleep

from relwatch.core.result import Err, Ok, Result
from relwatch.core.structured import get_str, get_table
from relwatch.output.console import ConsoleProtocol, Style
from relwatch.services.deploy.amplify import DeploymentProvider
from relwatch.services.deploy.errors import DeployError
from relwatch.services.deploy.model import (
    DEFAULT_BRANCH,
    DeploymentJob,
    DeployResult,
    JobStatus,
)
from relwatch.services.deploy.timeouts import (
    POLL_INTERVAL_SECONDS,
    POLL_MAX_ATTEMPTS,
    POLL_MAX_CONSECUTIVE_ERRORS,
)


def start_deployment(
    provider: DeploymentProvider,
    *,
    target_id: str,
    branch_name: str,
    reason: str,
    commit_id: str,
) -> Result[str, DeployError]:
    """Submit a release job; Ok(job_id) only when the provider returned one."""
    result = provider.start_job(
        target_id=target_id,
        branch_name=branch_name,
        reason=reason,
        commit_id=commit_id,
    )
    if isinstance(result, Err):
        return Err(
            DeployError(
                kind="start_failed",
                message=result.error.message,
                hint=result.error.hint,
            )
        )

    summary = get_table(result.value, "jobSummary")
    job_id = get_str(summary, "jobId") if summary is not None else None
    if job_id is None:
        return Err(
            DeployError(
                kind="start_failed",
                message=f"no job id returned for {target_id}/{branch_name}",
            )
        )
    return Ok(job_id)


def query_status(
    provider: DeploymentProvider,
    *,
    target_id: str,
    branch_name: str,
    job_id: str,
) -> Result[JobStatus, DeployError]:
    result = provider.get_job(target_id=target_id, branch_name=branch_name, job_id=job_id)
    if isinstance(result, Err):
        return result

    job = get_table(result.value, "job")
    summary = get_table(job, "summary") if job is not None else None
    raw = get_str(summary, "status") if summary is not None else None
    return Ok(JobStatus.parse(raw))


def poll_until_terminal(
    provider: DeploymentProvider,
    *,
    target_id: str,
    branch_name: str,
    job_id: str,
    console: ConsoleProtocol,
    label: str | None = None,
    interval: float = POLL_INTERVAL_SECONDS,
    max_attempts: int = POLL_MAX_ATTEMPTS,
    max_consecutive_errors: int = POLL_MAX_CONSECUTIVE_ERRORS,
) -> Result[DeploymentJob, DeployError]:
    """Query the job until SUCCEED / FAILED / CANCELLED.

    UNKNOWN (missing or unrecognized status, or a failed query within the
    error allowance) keeps polling. Returns Err(poll_timeout) after
    `max_attempts` queries without a terminal status.
    """
    name = label or target_id
    job = DeploymentJob(target_id=target_id, branch_name=branch_name, job_id=job_id)
    attempts = max(1, max_attempts)
    errors_in_row = 0

    for attempt in range(attempts):
        status_result = query_status(
            provider,
            target_id=target_id,
            branch_name=branch_name,
            job_id=job_id,
        )
        if isinstance(status_result, Err):
            errors_in_row += 1
            if errors_in_row > max_consecutive_errors:
                return status_result
            console.warning(f"status query failed for {name}: {status_result.error.pretty()}")
            status = JobStatus.UNKNOWN
        else:
            errors_in_row = 0
            status = status_result.value

        job = replace(job, status=status)
        console.print(f"Current status for {name}: {status}", Style.DIM)
        if status.is_terminal:
            return Ok(job)

        if attempt < attempts - 1:
            sleep(interval)

    return Err(
        DeployError(
            kind="poll_timeout",
            message=f"job {job_id} for {name} did not finish after {attempts} status checks",
            hint=f"last status: {job.status}",
        )
    )


def deploy_to_remote(
    provider: DeploymentProvider,
    *,
    target_id: str,
    target_name: str,
    commit_id: str,
    reason: str,
    console: ConsoleProtocol,
    branch_name: str = DEFAULT_BRANCH,
    interval: float = POLL_INTERVAL_SECONDS,
    max_attempts: int = POLL_MAX_ATTEMPTS,
) -> DeployResult:
    console.info(f"Deploying {target_name} ({target_id}) to Amplify")
    failure = DeployResult(target_id=target_id, target_name=target_name, status="failure")

    try:
        started = start_deployment(
            provider,
            target_id=target_id,
            branch_name=branch_name,
            reason=reason,
            commit_id=commit_id,
        )
        if isinstance(started, Err):
            console.error(f"Error deploying to Amplify: {started.error.pretty()}")
            return failure

        job_id = started.value
        console.print(f"Amplify job started with ID: {job_id}", Style.DIM)

        polled = poll_until_terminal(
            provider,
            target_id=target_id,
            branch_name=branch_name,
            job_id=job_id,
            console=console,
            label=target_name,
            interval=interval,
            max_attempts=max_attempts,
        )
    except Exception as e:  # noqa: BLE001
        console.error(f"Error deploying to Amplify: {e}")
        return failure

    if isinstance(polled, Err):
        console.error(f"Error deploying to Amplify: {polled.error.pretty()}")
        return replace(failure, job_id=job_id)

    result = DeployResult.from_job(polled.value, target_name=target_name)
    if result.ok:
        console.success(f"Deployment successful for {target_name}")
    else:
        console.error(f"Deployment failed for {target_name} ({polled.value.status})")
    return result
