"""Exceptions raised by the code intelligence core."""


class CodeIntelError(Exception):
    """Base class for errors raised on purpose by this package."""


class UnknownLanguageError(CodeIntelError, KeyError):
    """No language spec is registered for a language id."""


class IndexLoadError(CodeIntelError):
    """The precise index file is missing or malformed."""
