"""Document highlights derived from cross-document locations."""

from typing import Iterable

from navcommon.lsp.lsp_types import DocumentHighlight
from navcommon.lsp.lsp_types import HighlightCandidate
from navcommon.lsp.lsp_types import Location
from navcommon.lsp.lsp_types import TextDocument


def filter_locations_for_document_highlights(
    document: TextDocument | str, locations: Iterable[HighlightCandidate | Location]
) -> list[DocumentHighlight]:
    """
    Keep the locations that lie in the given document, in their original order, as highlights.

    document: The document (or its URI) to highlight in. URIs must match exactly.
    Locations without a range are dropped.
    """
    uri = document if isinstance(document, str) else document.uri
    return [
        DocumentHighlight(range=location.range)
        for location in locations
        if location.uri == uri and location.range is not None
    ]
