"""Settings for the logging provider."""

from pathlib import Path

from navcommon.settings import setting

OUTPUT_DIR = setting(
    "output-dir",
    Path,
    description=(
        "Filesystem directory to store outputs like log files in. "
        "Logs are written to the 'logs' subdirectory. "
        "Default is '.' (the current working directory)."
    ),
    default=Path.cwd(),
    cli_option="--output-dir",
)

LOG_LEVEL = setting(
    "log-level",
    str,
    description="Minimum level of messages printed to the console (DEBUG, INFO, WARNING, ERROR).",
    default="INFO",
    cli_option="--log-level",
)

DUMP_ALL_CONFIG = setting(
    "dump-all-config",
    bool,
    description="Spend extra effort to gather more information about the environment when dumping the config",
    default=False,
    cli_option="--dump-all-config",
)
