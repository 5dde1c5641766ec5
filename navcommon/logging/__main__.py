"""
Logging smoke test.

Run "python3 -m navcommon.logging" to check that the basic logging setup works.
"""

import argparse

from ..settings import init_settings
from ..settings import load_settings
from .dump_config import dump_config
from .logging_provider import LOGGING_PROVIDER

log = LOGGING_PROVIDER.new_logger("logging-test")


def main() -> None:
    "Set up logging from the settings and write a few messages."
    p = argparse.ArgumentParser(description="check the logging setup")
    init_settings(p)
    a = p.parse_args()
    load_settings(a)
    LOGGING_PROVIDER.init_logging()
    dump_config(log)
    log.debug("This goes to the log file only (unless --log-level DEBUG)")
    log.info(f"Logging test done, logs are in {LOGGING_PROVIDER.log_dir}")


if __name__ == "__main__":
    main()
