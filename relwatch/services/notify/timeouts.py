from __future__ import annotations

# Slack Web API calls
SLACK_TIMEOUT_SECONDS = 10.0

# Supervisor parent-liveness probe
PROBE_INTERVAL_SECONDS = 2.0

# How long the main process waits for the supervisor to exit after a
# stand-down request before killing it.
STAND_DOWN_WAIT_SECONDS = 5.0
