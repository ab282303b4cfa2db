from __future__ import annotations

# Probe cadence (ms between the end of one probe and the start of the next)
DEFAULT_INTERVAL_MS = 100

# Output encoding used when --format is not given
DEFAULT_FORMAT = "human"

# Echo settings
DEFAULT_BACKEND = "icmplib"
DEFAULT_TIMEOUT_SECONDS = 1.0  # fail if no reply within this time
PAYLOAD_SIZE = 0  # bytes of echo payload

# Diagnostics
ERROR_PREFIX = "error"
LOG_FORMAT = "%(message)s"
LOG_TIME_FORMAT = "[%X]"
