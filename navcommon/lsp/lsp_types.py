"""
Subset of the LSP data model used for code navigation results.

See https://microsoft.github.io/language-server-protocol/specifications/lsp/3.17/specification/.
Field names follow the protocol, so model_dump() produces protocol-shaped JSON.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import model_validator


class Position(BaseModel):
    """Position."""

    model_config = ConfigDict(frozen=True)

    line: int
    """Line position in a document (zero-based)"""

    character: int
    """Character offset on a line in a document (zero-based)."""

    @model_validator(mode="after")
    def _non_negative(self) -> Position:
        if self.line < 0 or self.character < 0:
            raise ValueError(f"Position must not be negative: {self.line}:{self.character}")
        return self

    def __lt__(self, other: Position) -> bool:
        return (self.line, self.character) < (other.line, other.character)

    def __le__(self, other: Position) -> bool:
        return (self.line, self.character) <= (other.line, other.character)


class Range(BaseModel):
    """
    Range between two positions.

    The end position is exclusive, like an editor selection.
    """

    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position

    @model_validator(mode="after")
    def _ordered(self) -> Range:
        if self.end < self.start:
            raise ValueError(f"Range end {self.end} is before its start {self.start}")
        return self

    @staticmethod
    def of(start_line: int, start_character: int, end_line: int, end_character: int) -> Range:
        """Shorthand constructor."""
        return Range(
            start=Position(line=start_line, character=start_character),
            end=Position(line=end_line, character=end_character),
        )

    def contains(self, position: Position) -> bool:
        """True if position lies inside this range (start inclusive, end exclusive)."""
        return self.start <= position < self.end


class Badge(BaseModel):
    """
    Marker attached to a result to explain where it came from.

    Rendered by the client next to the result, e.g. as an icon with a tooltip.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["info", "warning", "error"]
    """Severity of the badge, selects the icon."""

    hoverMessage: str
    """Tooltip shown for the badge."""

    linkURL: str | None = None
    """Where clicking the badge leads to."""


class Badged(BaseModel):
    """Base for results that may carry a provenance badge."""

    model_config = ConfigDict(frozen=True)

    badge: Badge | None = None
    """Set if the result did not come from a precise source."""


class Location(Badged):
    """
    Location.

    The uri is an opaque identifier and is compared verbatim; it is not normalized.
    """

    uri: str
    range: Range


class MarkupContent(BaseModel):
    """Markdown or plain text content."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["markdown", "plaintext"] = "markdown"
    value: str


class Hover(Badged):
    """Hover documentation for the symbol under the cursor."""

    contents: MarkupContent
    range: Range | None = None


class DocumentHighlightKind(IntEnum):
    """
    A document highlight kind.

    https://microsoft.github.io/language-server-protocol/specifications/lsp/3.17/specification/#documentHighlightKind
    """

    # pylint: disable=invalid-name
    Text = 1
    Read = 2
    Write = 3


class DocumentHighlight(BaseModel):
    """A range inside the current document to highlight. The document is implicit."""

    model_config = ConfigDict(frozen=True)

    range: Range
    kind: DocumentHighlightKind | None = None


class HighlightCandidate(BaseModel):
    """A location in any document, possibly without a range, considered for highlighting."""

    model_config = ConfigDict(frozen=True)

    uri: str
    range: Range | None = None


class TextDocument(BaseModel):
    """The document a navigation request is made in."""

    model_config = ConfigDict(frozen=True)

    uri: str
    """The text document's URI."""

    languageId: str
    """The text document's language identifier."""

    text: str | None = None
    """The content of the document, if known."""


class ReferenceContext(BaseModel):
    """ReferenceContext"""

    model_config = ConfigDict(frozen=True)

    includeDeclaration: bool
    """Include the declaration of the current symbol."""
