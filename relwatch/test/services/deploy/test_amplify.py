from __future__ import annotations

import json
from pathlib import Path

import pytest

from relwatch.core.result import Err, Ok
from relwatch.platform.process import ProcessError
from relwatch.services.deploy import amplify as amplify_mod


def _err(*, stderr: str, returncode: int = 255) -> Err[ProcessError]:
    return Err(
        ProcessError(
            command=("aws", "amplify", "get-job"),
            returncode=returncode,
            stdout="",
            stderr=stderr,
        )
    )


def _no_sleep(seconds: float) -> None:
    del seconds


def test_start_job_builds_release_command(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        calls.append(cmd)
        return Ok(json.dumps({"jobSummary": {"jobId": "5", "status": "PENDING"}}))

    monkeypatch.setattr(amplify_mod, "run_process", fake_run)

    client = amplify_mod.AmplifyCli(cwd=tmp_path, region="eu-west-1")
    result = client.start_job(
        target_id="d1abc",
        branch_name="main",
        reason="Fix bug (#12)",
        commit_id="c0ffee",
    )

    assert isinstance(result, Ok)
    assert result.value == {"jobSummary": {"jobId": "5", "status": "PENDING"}}
    cmd = calls[0]
    assert cmd[:3] == ["aws", "amplify", "start-job"]
    assert cmd[cmd.index("--region") + 1] == "eu-west-1"
    assert cmd[cmd.index("--app-id") + 1] == "d1abc"
    assert cmd[cmd.index("--job-type") + 1] == "RELEASE"
    assert cmd[cmd.index("--job-reason") + 1] == "Fix bug (#12)"
    assert cmd[cmd.index("--commit-id") + 1] == "c0ffee"


def test_start_job_truncates_long_reason(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        calls.append(cmd)
        return Ok("{}")

    monkeypatch.setattr(amplify_mod, "run_process", fake_run)

    amplify_mod.AmplifyCli(cwd=tmp_path).start_job(
        target_id="d1abc", branch_name="main", reason="x" * 400, commit_id=""
    )

    cmd = calls[0]
    reason = cmd[cmd.index("--job-reason") + 1]
    assert len(reason) == 255
    assert reason.endswith("...")
    assert "--commit-id" not in cmd
    assert "--region" not in cmd


def test_start_job_is_never_retried(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        calls.append(cmd)
        return _err(stderr="Could not connect to the endpoint URL")

    monkeypatch.setattr(amplify_mod, "run_process", fake_run)
    monkeypatch.setattr(amplify_mod, "sleep", _no_sleep)

    result = amplify_mod.AmplifyCli(cwd=tmp_path).start_job(
        target_id="d1abc", branch_name="main", reason="r", commit_id="c"
    )

    assert isinstance(result, Err)
    assert result.error.kind == "start_failed"
    assert len(calls) == 1


def test_get_job_retries_transient_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []
    responses = [
        _err(stderr="An error occurred (TooManyRequestsException): Rate exceeded"),
        Ok(json.dumps({"job": {"summary": {"status": "RUNNING"}}})),
    ]

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        calls.append(cmd)
        return responses.pop(0)

    monkeypatch.setattr(amplify_mod, "run_process", fake_run)
    monkeypatch.setattr(amplify_mod, "sleep", _no_sleep)

    result = amplify_mod.AmplifyCli(cwd=tmp_path).get_job(
        target_id="d1abc", branch_name="main", job_id="5"
    )

    assert isinstance(result, Ok)
    assert result.value == {"job": {"summary": {"status": "RUNNING"}}}
    assert len(calls) == 2
    assert calls[0][calls[0].index("--job-id") + 1] == "5"


def test_get_job_does_not_retry_on_non_transient(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        calls.append(cmd)
        return _err(stderr="An error occurred (NotFoundException): job 5 not found")

    monkeypatch.setattr(amplify_mod, "run_process", fake_run)
    monkeypatch.setattr(amplify_mod, "sleep", _no_sleep)

    result = amplify_mod.AmplifyCli(cwd=tmp_path).get_job(
        target_id="d1abc", branch_name="main", job_id="5"
    )

    assert isinstance(result, Err)
    assert result.error.kind == "query_failed"
    assert result.error.hint is not None and "NotFoundException" in result.error.hint
    assert len(calls) == 1


@pytest.mark.parametrize("stdout", ["not json", "[1, 2]"])
def test_invalid_payload(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, stdout: str) -> None:
    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cmd
        del cwd
        del timeout
        return Ok(stdout)

    monkeypatch.setattr(amplify_mod, "run_process", fake_run)

    result = amplify_mod.AmplifyCli(cwd=tmp_path).get_job(
        target_id="d1abc", branch_name="main", job_id="5"
    )

    assert isinstance(result, Err)
    assert result.error.kind == "invalid_response"


def test_ensure_aws_available(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(amplify_mod.shutil, "which", lambda name: None)
    result = amplify_mod.ensure_aws_available()
    assert isinstance(result, Err)
    assert result.error.kind == "aws_missing"

    monkeypatch.setattr(amplify_mod.shutil, "which", lambda name: "/usr/bin/aws")
    assert amplify_mod.ensure_aws_available() == Ok(None)
