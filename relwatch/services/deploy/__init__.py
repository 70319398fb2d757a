"""Deployment to a managed hosting job queue (AWS Amplify)."""

from .amplify import AmplifyCli, DeploymentProvider
from .errors import DeployError
from .model import DeploymentJob, DeployResult, JobStatus
from .poller import deploy_to_remote, poll_until_terminal, start_deployment

__all__ = [
    "AmplifyCli",
    "DeployError",
    "DeployResult",
    "DeploymentJob",
    "DeploymentProvider",
    "JobStatus",
    "deploy_to_remote",
    "poll_until_terminal",
    "start_deployment",
]
