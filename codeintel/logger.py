"""Logger for the code intelligence core."""

from navcommon.logging.logging_provider import LOGGING_PROVIDER

CODEINTEL_LOGGER = LOGGING_PROVIDER.new_logger("codeintel", hook_exception=True)
