"""
Central place for creating loggers and wiring them to handlers.

Loggers are declared at import time with LOGGING_PROVIDER.new_logger(), but handlers are only attached once the entry
point calls LOGGING_PROVIDER.init_logging(). Until then, records propagate to the root logger as usual.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

ROOT_LOGGER_NAME = "nav"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"


@dataclass
class _LoggerEntry:
    "Bookkeeping for a logger created by the provider."

    logger: logging.Logger
    log_to_console: bool


class LoggingProvider:
    """
    Hands out loggers below a common root and configures their handlers.
    """

    def __init__(self, root_name: str = ROOT_LOGGER_NAME) -> None:
        self.root_name = root_name
        self.entries: dict[str, _LoggerEntry] = {}
        self.log_dir: Path | None = None
        self.initialized = False
        self.console_level = logging.INFO
        self._handlers: list[logging.Handler] = []

    def new_logger(self, name: str, log_to_console: bool = True, hook_exception: bool = False) -> logging.Logger:
        """
        Create (or return the existing) logger with the given name.

        name: Short name of the logger, it is placed below the provider's root logger.
        log_to_console: Whether messages also go to stderr once logging is initialized. They always go to the log file.
        hook_exception: Log uncaught exceptions to this logger.
        """
        full_name = f"{self.root_name}.{name}"
        if full_name in self.entries:
            return self.entries[full_name].logger

        logger = logging.getLogger(full_name)
        logger.setLevel(logging.DEBUG)
        self.entries[full_name] = _LoggerEntry(logger, log_to_console)

        if hook_exception:
            self._hook_exception(logger)

        if self.initialized:
            self._attach_handlers(full_name)

        return logger

    def init_logging(self, output_dir: Path | None = None) -> None:
        """
        Attach file and console handlers to all loggers created so far (and all loggers created later).

        output_dir: Directory to create the "logs" directory in. Default: the output-dir setting.

        Calling this again replaces the handlers installed by the previous call.
        """
        # imported here, so declaring loggers never depends on the settings being loaded
        from .settings import LOG_LEVEL  # pylint: disable=C0415
        from .settings import OUTPUT_DIR  # pylint: disable=C0415

        if output_dir is None:
            output_dir = OUTPUT_DIR.get()

        self.shutdown()

        self.log_dir = output_dir / "logs"
        self.log_dir.mkdir(parents=True, exist_ok=True)
        level = logging.getLevelName(LOG_LEVEL.get().upper())
        self.console_level = level if isinstance(level, int) else logging.INFO

        self.initialized = True
        for full_name in self.entries:
            self._attach_handlers(full_name)

    def shutdown(self) -> None:
        """Detach and close all handlers installed by init_logging()."""
        for entry in self.entries.values():
            for handler in self._handlers:
                entry.logger.removeHandler(handler)
            entry.logger.propagate = True
        for handler in self._handlers:
            handler.close()
        self._handlers.clear()
        self.initialized = False

    def _attach_handlers(self, full_name: str) -> None:
        entry = self.entries[full_name]
        assert self.log_dir is not None

        file_handler = logging.FileHandler(self.log_dir / f"{full_name}.log", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        entry.logger.addHandler(file_handler)
        self._handlers.append(file_handler)

        if entry.log_to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(self.console_level)
            console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
            entry.logger.addHandler(console_handler)
            self._handlers.append(console_handler)

        # our handlers replace whatever the root logger would do with these records
        entry.logger.propagate = False

    @staticmethod
    def _hook_exception(logger: logging.Logger) -> None:
        previous_hook = sys.excepthook

        def excepthook(exc_type: type[BaseException], exc: BaseException, tb: TracebackType | None) -> None:
            if not issubclass(exc_type, KeyboardInterrupt):
                logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))
            previous_hook(exc_type, exc, tb)

        sys.excepthook = excepthook


LOGGING_PROVIDER = LoggingProvider()
