"""AWS Amplify job API, driven through the `aws` CLI.

The poller only depends on the DeploymentProvider shape:
- start_job -> {"jobSummary": {"jobId": ...}}
- get_job   -> {"job": {"summary": {"status": ...}}}
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from time import sleep
from typing import Protocol

from relwatch.core.result import Err, Ok, Result
from relwatch.core.structured import StrDict, as_str_dict
from relwatch.platform.process import ProcessError
from relwatch.platform.process import run as run_process
from relwatch.services.deploy.errors import DeployError, DeployErrorKind
from relwatch.services.deploy.timeouts import (
    AWS_READ_RETRY_ATTEMPTS,
    AWS_READ_RETRY_DELAY_SECONDS,
    AWS_TIMEOUT_SECONDS,
)

# Amplify rejects job reasons longer than this.
_JOB_REASON_MAX_LEN = 255


class DeploymentProvider(Protocol):
    def start_job(
        self,
        *,
        target_id: str,
        branch_name: str,
        reason: str,
        commit_id: str,
    ) -> Result[StrDict, DeployError]: ...

    def get_job(
        self,
        *,
        target_id: str,
        branch_name: str,
        job_id: str,
    ) -> Result[StrDict, DeployError]: ...


def _is_transient_aws_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "read timeout",
        "connect timeout",
        "could not connect to the endpoint",
        "connection was closed",
        "connection reset",
        "throttling",
        "toomanyrequests",
        "rate exceeded",
        "service unavailable",
        "internalfailure",
        "internal server error",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def _truncate_reason(reason: str) -> str:
    text = reason.strip()
    if len(text) > _JOB_REASON_MAX_LEN:
        return text[: _JOB_REASON_MAX_LEN - 3] + "..."
    return text


def ensure_aws_available() -> Result[None, DeployError]:
    if shutil.which("aws") is None:
        return Err(
            DeployError(
                kind="aws_missing",
                message="aws: missing",
                hint="Install AWS CLI v2: https://aws.amazon.com/cli/",
            )
        )
    return Ok(None)


class AmplifyCli:
    """DeploymentProvider backed by `aws amplify ... --output json`."""

    def __init__(
        self,
        *,
        cwd: Path,
        region: str | None = None,
        timeout: float = AWS_TIMEOUT_SECONDS,
        retry_attempts: int = AWS_READ_RETRY_ATTEMPTS,
    ) -> None:
        self._cwd = cwd
        self._region = region
        self._timeout = timeout
        self._retry_attempts = retry_attempts

    def _base(self, action: str) -> list[str]:
        cmd = ["aws", "amplify", action, "--output", "json"]
        if self._region:
            cmd.extend(["--region", self._region])
        return cmd

    def _run_json(
        self,
        cmd: list[str],
        *,
        kind: DeployErrorKind,
        message: str,
        retry: bool,
    ) -> Result[StrDict, DeployError]:
        attempts = max(1, self._retry_attempts) if retry else 1
        for attempt in range(attempts):
            result = run_process(cmd, cwd=self._cwd, timeout=self._timeout)
            if isinstance(result, Err):
                error = result.error
                if attempt < attempts - 1 and _is_transient_aws_error(error):
                    sleep(AWS_READ_RETRY_DELAY_SECONDS * (attempt + 1))
                    continue
                return Err(
                    DeployError(
                        kind=kind,
                        message=message,
                        hint=error.stderr.strip() or None,
                    )
                )

            try:
                obj: object = json.loads(result.value)
            except json.JSONDecodeError as e:
                return Err(
                    DeployError(
                        kind="invalid_response",
                        message=f"aws returned invalid JSON: {e}",
                        hint=" ".join(cmd[:3]),
                    )
                )

            data = as_str_dict(obj)
            if data is None:
                return Err(
                    DeployError(
                        kind="invalid_response",
                        message="aws returned an unexpected payload",
                        hint=" ".join(cmd[:3]),
                    )
                )
            return Ok(data)

        return Err(DeployError(kind=kind, message=message))

    def start_job(
        self,
        *,
        target_id: str,
        branch_name: str,
        reason: str,
        commit_id: str,
    ) -> Result[StrDict, DeployError]:
        cmd = self._base("start-job")
        cmd.extend(
            [
                "--app-id",
                target_id,
                "--branch-name",
                branch_name,
                "--job-type",
                "RELEASE",
                "--job-reason",
                _truncate_reason(reason) or "release",
            ]
        )
        if commit_id:
            cmd.extend(["--commit-id", commit_id])

        # Starting a job is not idempotent: never retried.
        return self._run_json(
            cmd,
            kind="start_failed",
            message=f"failed to start Amplify job for {target_id}/{branch_name}",
            retry=False,
        )

    def get_job(
        self,
        *,
        target_id: str,
        branch_name: str,
        job_id: str,
    ) -> Result[StrDict, DeployError]:
        cmd = self._base("get-job")
        cmd.extend(["--app-id", target_id, "--branch-name", branch_name, "--job-id", job_id])
        return self._run_json(
            cmd,
            kind="query_failed",
            message=f"failed to query Amplify job {job_id}",
            retry=True,
        )
