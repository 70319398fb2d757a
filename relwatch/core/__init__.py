"""Core domain types: results, exit codes and configuration."""

from .config import CiSettings, ConfigError, ReleaseEnv, SlackSettings, load_release_env
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "CiSettings",
    "ConfigError",
    "ReleaseEnv",
    "SlackSettings",
    "load_release_env",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
