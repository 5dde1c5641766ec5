"""Provenance badges for results that did not come from precise code intelligence."""

from typing import TypeVar

from navcommon.lsp.lsp_types import Badge
from navcommon.lsp.lsp_types import Badged

BadgedT = TypeVar("BadgedT", bound=Badged)

IMPRECISE_BADGE = Badge(
    kind="info",
    hoverMessage="Search-based result: found by text search, so it may be inaccurate or incomplete.",
)


def badge(value: BadgedT, marker: Badge = IMPRECISE_BADGE) -> BadgedT:
    """
    Return a copy of value carrying the given badge.

    The original is left untouched; badging an already badged value just replaces its badge.
    """
    return value.model_copy(update={"badge": marker})


def badge_values(values: BadgedT | list[BadgedT], marker: Badge = IMPRECISE_BADGE) -> BadgedT | list[BadgedT]:
    """Badge a single value or every value of a list."""
    if isinstance(values, list):
        return [badge(v, marker) for v in values]
    return badge(values, marker)


def is_imprecise(value: Badged) -> bool:
    """True if value carries the imprecise badge."""
    return value.badge == IMPRECISE_BADGE
