"""
Precise code intelligence from a pre-computed cross-reference index.

The index is a JSON document of the form

    {
        "documents": {
            "<uri>": [
                {
                    "range": {"start": {...}, "end": {...}},
                    "definitions": [<Location>, ...],
                    "references": [<Location>, ...],
                    "hover": "markdown text or null"
                },
                ...
            ]
        }
    }

Each entry describes one symbol occurrence in a document. Entries may nest, the innermost one wins.
"""

from pathlib import Path
from typing import AsyncGenerator

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import ValidationError

from navcommon.lsp.lsp_types import DocumentHighlight
from navcommon.lsp.lsp_types import Hover
from navcommon.lsp.lsp_types import Location
from navcommon.lsp.lsp_types import MarkupContent
from navcommon.lsp.lsp_types import Position
from navcommon.lsp.lsp_types import Range
from navcommon.lsp.lsp_types import ReferenceContext
from navcommon.lsp.lsp_types import TextDocument

from ..exceptions import IndexLoadError
from ..logger import CODEINTEL_LOGGER
from .highlights import filter_locations_for_document_highlights

log = CODEINTEL_LOGGER.getChild(__name__)


class IndexedRange(BaseModel):
    """Cross-reference data of one symbol occurrence."""

    model_config = ConfigDict(frozen=True)

    range: Range
    definitions: list[Location] = []
    references: list[Location] = []
    hover: str | None = None


class PreciseIndex(BaseModel):
    """Cross-reference data of a set of documents."""

    documents: dict[str, list[IndexedRange]] = {}

    @staticmethod
    def load(path: Path) -> "PreciseIndex":
        """Load an index from a JSON file. Throws IndexLoadError."""
        try:
            return PreciseIndex.model_validate_json(path.read_bytes())
        except OSError as e:
            raise IndexLoadError(f"Cannot read index {path}: {e}") from e
        except ValidationError as e:
            raise IndexLoadError(f"Invalid index {path}: {e}") from e

    def ranges_at(self, uri: str, position: Position) -> list[IndexedRange]:
        """Indexed ranges of the document containing position, innermost first."""
        containing = [r for r in self.documents.get(uri, []) if r.range.contains(position)]
        # a range nested in another one starts later or ends earlier
        return sorted(
            containing,
            key=lambda r: (
                -r.range.start.line,
                -r.range.start.character,
                r.range.end.line,
                r.range.end.character,
            ),
        )

    def _innermost(self, document: TextDocument, position: Position) -> IndexedRange | None:
        ranges = self.ranges_at(document.uri, position)
        if not ranges:
            log.debug(f"No indexed range at {document.uri}:{position.line + 1}:{position.character + 1}")
            return None
        return ranges[0]

    async def definition(self, document: TextDocument, position: Position) -> AsyncGenerator[list[Location], None]:
        """Yield the indexed definitions of the symbol at position."""
        indexed = self._innermost(document, position)
        if indexed is not None and indexed.definitions:
            yield list(indexed.definitions)

    async def references(
        self, document: TextDocument, position: Position, context: ReferenceContext
    ) -> AsyncGenerator[list[Location], None]:
        """Yield the indexed references of the symbol at position."""
        indexed = self._innermost(document, position)
        if indexed is None:
            return
        references = list(indexed.references)
        if not context.includeDeclaration:
            definitions = set(indexed.definitions)
            references = [location for location in references if location not in definitions]
        if references:
            yield references

    async def hover(self, document: TextDocument, position: Position) -> AsyncGenerator[Hover, None]:
        """Yield the indexed hover text of the symbol at position."""
        indexed = self._innermost(document, position)
        if indexed is not None and indexed.hover:
            yield Hover(contents=MarkupContent(kind="markdown", value=indexed.hover), range=indexed.range)

    async def document_highlights(
        self, document: TextDocument, position: Position
    ) -> AsyncGenerator[list[DocumentHighlight], None]:
        """Yield the occurrences of the symbol at position within the same document."""
        indexed = self._innermost(document, position)
        if indexed is None:
            return
        highlights = filter_locations_for_document_highlights(
            document, [*indexed.definitions, *indexed.references]
        )
        # a definition is usually also listed as a reference
        unique = list(dict.fromkeys(highlights))
        if unique:
            yield unique
