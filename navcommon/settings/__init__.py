"""
Central registry for configuration knobs.

Settings are declared using setting(), bound to CLI arguments using init_settings(), and loaded from CLI arguments and
environment variables by load_settings().
A setting has no CLI option unless "cli_option=" is given.
A setting's environment variable is derived from its name (e.g., the setting "search-batch-size" is read from
"CODEINTEL_SEARCH_BATCH_SIZE"), unless "env_name=" is given.

Declare settings in a settings.py next to their consumers, import them there, and call init_settings() and
load_settings() from the entry point (load_settings() after parse_args() when using CLI parsing).
"""

from navcommon.settings.settings import SETTINGS
from navcommon.settings.settings import Setting
from navcommon.settings.settings import init_settings
from navcommon.settings.settings import load_settings
from navcommon.settings.settings import parse_bool
from navcommon.settings.settings import setting

# Use setting() (not the Setting class) to declare settings. Setting is exported for type hints.
__all__ = ["init_settings", "load_settings", "parse_bool", "setting", "Setting", "SETTINGS"]
