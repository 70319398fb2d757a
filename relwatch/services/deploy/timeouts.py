from __future__ import annotations

# Amplify job polling
POLL_INTERVAL_SECONDS = 15.0
# 240 x 15s = 1 hour before an unresponsive job counts as failed.
POLL_MAX_ATTEMPTS = 240
# Failed status queries tolerated in a row (each counts as UNKNOWN).
POLL_MAX_CONSECUTIVE_ERRORS = 3

# aws CLI invocations
AWS_TIMEOUT_SECONDS = 60.0

# Idempotent aws read retry policy
AWS_READ_RETRY_ATTEMPTS = 3
AWS_READ_RETRY_DELAY_SECONDS = 1.0
