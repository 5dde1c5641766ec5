"""Tests for deriving document highlights from locations."""

from codeintel.lsif.highlights import filter_locations_for_document_highlights
from navcommon.lsp.lsp_types import DocumentHighlight
from navcommon.lsp.lsp_types import HighlightCandidate
from navcommon.lsp.lsp_types import Location
from navcommon.lsp.lsp_types import Range
from navcommon.lsp.lsp_types import TextDocument

DOC = TextDocument(uri="https://codeintel.test/repo@rev/-/raw/foo.ts", languageId="typescript")

RANGE1 = Range.of(1, 2, 3, 4)
RANGE2 = Range.of(2, 3, 4, 5)
RANGE3 = Range.of(3, 4, 5, 6)
RANGE4 = Range.of(4, 5, 6, 7)


def test_filters_out_distinct_paths() -> None:
    """Only locations in the document are kept, in order"""

    highlights = filter_locations_for_document_highlights(
        DOC,
        [
            HighlightCandidate(uri=DOC.uri, range=RANGE1),
            HighlightCandidate(uri=DOC.uri + "_distinct", range=RANGE2),
            HighlightCandidate(uri=DOC.uri + "_distinct", range=RANGE3),
            HighlightCandidate(uri=DOC.uri, range=RANGE4),
            HighlightCandidate(uri=DOC.uri),
        ],
    )

    assert highlights == [DocumentHighlight(range=RANGE1), DocumentHighlight(range=RANGE4)]


def test_accepts_locations_and_uris() -> None:
    """Full locations and a bare document uri work as well"""

    locations = [Location(uri=DOC.uri, range=RANGE2), Location(uri="file:///other.ts", range=RANGE3)]

    assert filter_locations_for_document_highlights(DOC.uri, locations) == [DocumentHighlight(range=RANGE2)]


def test_no_matches() -> None:
    """Nothing is highlighted without locations in the document"""

    assert not filter_locations_for_document_highlights(DOC, [])
    assert not filter_locations_for_document_highlights(DOC, [HighlightCandidate(uri=DOC.uri.upper(), range=RANGE1)])
