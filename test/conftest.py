"""Pytest config."""

from pathlib import Path

import pytest

# imported for declaring their settings before the settings are loaded
import codeintel.settings  # noqa: F401  # pylint: disable=W0611
import navcommon.logging.settings  # noqa: F401  # pylint: disable=W0611
from navcommon.logging.logging_provider import LOGGING_PROVIDER
from navcommon.settings import init_settings
from navcommon.settings import load_settings


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> None:
    """Load settings from the environment and log to test_log/."""

    init_settings()
    load_settings()

    LOGGING_PROVIDER.init_logging(Path("test_log"))
