"""Error codes for CLI exit status.

Stable process exit codes shared by every relwatch command. CI pipelines
branch on these values, so they must not be renumbered.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (bad arguments, unreadable input files)
    - 2: Environment error (missing credentials or CI variables)
    - 3: Deploy error (job failed, cancelled or never started)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    DEPLOY_ERROR = 3

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")