from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from relwatch.release.contracts import ReleaseArtifact

DEFAULT_BRANCH = "main"


class JobStatus(Enum):
    """Amplify job status.

    Anything the provider reports that is not listed here, including a
    missing status, maps to UNKNOWN, which keeps the poll loop running.
    """

    PENDING = "PENDING"
    PROVISIONING = "PROVISIONING"
    RUNNING = "RUNNING"
    SUCCEED = "SUCCEED"
    FAILED = "FAILED"
    CANCELLING = "CANCELLING"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEED, JobStatus.FAILED, JobStatus.CANCELLED)

    @classmethod
    def parse(cls, raw: str | None) -> JobStatus:
        if raw is None:
            return cls.UNKNOWN
        try:
            return cls(raw.strip().upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class DeploymentJob:
    target_id: str
    branch_name: str
    job_id: str
    status: JobStatus = JobStatus.PENDING


DeployStatus = Literal["success", "failure"]


@dataclass(frozen=True, slots=True)
class DeployResult:
    target_id: str
    target_name: str
    status: DeployStatus
    job_id: str | None = None
    url: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def from_job(cls, job: DeploymentJob, *, target_name: str) -> DeployResult:
        if job.status == JobStatus.SUCCEED:
            return cls(
                target_id=job.target_id,
                target_name=target_name,
                status="success",
                job_id=job.job_id,
                url=app_url(target_id=job.target_id, branch_name=job.branch_name),
            )
        return cls(
            target_id=job.target_id,
            target_name=target_name,
            status="failure",
            job_id=job.job_id,
        )

    def as_artifact(self) -> ReleaseArtifact:
        """Release record handed to later pipeline steps (and the success message)."""
        return ReleaseArtifact(name=f"Amplify ({self.target_name})", url=self.url)


def app_url(*, target_id: str, branch_name: str) -> str:
    return f"https://{branch_name}.{target_id}.amplifyapp.com"
