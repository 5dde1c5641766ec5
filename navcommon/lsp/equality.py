"""
Comparisons of positions, ranges and locations.

Comparisons are exact: URIs are compared verbatim and badges are ignored, so a badged copy of a location is equal to
the original.
"""

from .lsp_types import Location
from .lsp_types import Position
from .lsp_types import Range

LocationKey = tuple[str, int, int, int, int]


def positions_equal(a: Position, b: Position) -> bool:
    """True if both positions point to the same character."""
    return a.line == b.line and a.character == b.character


def ranges_equal(a: Range, b: Range) -> bool:
    """True if both ranges have equal start and end positions."""
    return positions_equal(a.start, b.start) and positions_equal(a.end, b.end)


def locations_equal(a: Location, b: Location) -> bool:
    """True if both locations have the same uri and range."""
    return a.uri == b.uri and ranges_equal(a.range, b.range)


def location_key(location: Location) -> LocationKey:
    """Hashable identity of a location, consistent with locations_equal()."""
    start, end = location.range.start, location.range.end
    return (location.uri, start.line, start.character, end.line, end.character)


def file_key(location: Location) -> str:
    """Identity of the resource containing a location."""
    return location.uri
