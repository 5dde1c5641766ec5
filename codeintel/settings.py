"""
Settings for code navigation.

The names below are not the names of the environment variables: those carry a CODEINTEL_ prefix and use underscores,
e.g. "search-batch-size" is read from CODEINTEL_SEARCH_BATCH_SIZE.
"""

# note: logging settings live in navcommon/logging/settings.py

from navcommon.settings import setting

TELEMETRY_ENABLED = setting(
    "telemetry-enabled",
    bool,
    description="Emit instrumentation events through the host's logTelemetryEvent command",
    default=True,
    cli_option="--telemetry-enabled",
)

SEARCH_BATCH_SIZE = setting(
    "search-batch-size",
    int,
    description="Number of files the text search scans before reporting intermediate reference results",
    default=50,
    cli_option="--search-batch-size",
)
