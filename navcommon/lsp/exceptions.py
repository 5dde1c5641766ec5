"""Exceptions for the LSP helpers."""


class NotAFileUriError(ValueError):
    """A URI that was expected to point to a local file has a different scheme."""
