"""File path module for switching between paths and file URIs."""

import os
from pathlib import Path
from urllib.parse import unquote
from urllib.parse import urlparse

from .exceptions import NotAFileUriError


class LspFilePath(os.PathLike):
    """
    File path that knows its URI representation.

    Navigation results carry URIs as opaque strings; this class is used wherever such a string has to be mapped to a
    file on disk, or a file on disk has to be reported as a result.
    """

    def __init__(self, path: Path | str):
        if isinstance(path, Path):
            self.path = path.absolute()
        else:
            parsed = urlparse(path)
            if parsed.scheme != "file":
                raise NotAFileUriError(f"Not a file URI: {path!r}")
            self.path = Path(unquote(parsed.path)).absolute()

    @property
    def uri(self) -> str:
        """Get path as uri"""
        return self.path.as_uri()

    def __repr__(self) -> str:
        return f"LspFilePath({self.path.as_posix()!r})"

    def __str__(self) -> str:
        return str(self.path)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LspFilePath) and self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    def __fspath__(self) -> str:
        return self.path.as_posix()
