"""Platform abstraction layer."""

from .detection import Platform, detect_platform, supports_process_signals
from .process import (
    ProcessError,
    SpawnError,
    pid_alive,
    request_exit,
    run,
    spawn_detached,
)

__all__ = [
    # detection
    "Platform",
    "detect_platform",
    "supports_process_signals",
    # process
    "ProcessError",
    "SpawnError",
    "pid_alive",
    "request_exit",
    "run",
    "spawn_detached",
]
