"""
Pagination options for SELECT queries.

A ``QueryOption`` carries page, offset and limit together. Pages are 1-based
and the two conversions share one rounding rule:

    offset = (page - 1) * limit
    page   = offset // limit + 1

so they are exact inverses for offsets aligned on ``limit`` and an unaligned
offset belongs to the page that contains it.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

DEFAULT_LIMIT = 25

TRAILING_SEMICOLON = re.compile(r";\s*$")


class OptionKind(str, Enum):
    PAGE = "page"
    OFFSET = "offset"


def offset_from_page(page: int, limit: int, default_limit: int = DEFAULT_LIMIT) -> int:
    """Offset of the first row of ``page`` (pages below 1 are clamped to 1)."""
    page = max(page, 1)
    if limit < 1:
        limit = default_limit
    return (page - 1) * limit


def page_from_offset(offset: int, limit: int, default_limit: int = DEFAULT_LIMIT) -> int:
    """Page containing the row at ``offset`` (negative offsets map to page 1)."""
    offset = max(offset, 0)
    if limit < 1:
        limit = default_limit
    return offset // limit + 1


@dataclass(frozen=True)
class QueryOption:
    """
    Immutable pagination option.

    ``inc_page`` and ``inc_offset`` return updated copies; the original
    option is never modified.

    Example:
        >>> option = page_option(2, 10)
        >>> option.offset
        10
        >>> option.inc_page(1).offset
        20
        >>> option.offset
        10
    """

    kind: OptionKind
    page: int
    offset: int
    limit: int

    def inc_page(self, inc: int) -> "QueryOption":
        page = self.page + inc
        return replace(self, page=page, offset=offset_from_page(page, self.limit))

    def inc_offset(self, inc: int) -> "QueryOption":
        offset = self.offset + inc
        return replace(self, offset=offset, page=page_from_offset(offset, self.limit))


def page_option(page: int, limit: int, default_limit: int = DEFAULT_LIMIT) -> QueryOption:
    """Build an option selecting ``page`` of ``limit`` rows."""
    if limit < 1:
        limit = default_limit
    return QueryOption(
        kind=OptionKind.PAGE,
        page=max(page, 1),
        offset=offset_from_page(page, limit),
        limit=limit,
    )


def offset_option(offset: int, limit: int, default_limit: int = DEFAULT_LIMIT) -> QueryOption:
    """Build an option selecting ``limit`` rows starting at ``offset``."""
    if limit < 1:
        limit = default_limit
    offset = max(offset, 0)
    return QueryOption(
        kind=OptionKind.OFFSET,
        page=page_from_offset(offset, limit),
        offset=offset,
        limit=limit,
    )


def trim_semicolon(query: str) -> str:
    """Remove a trailing semicolon and the whitespace after it."""
    return TRAILING_SEMICOLON.sub("", query)


def with_options(
    query: str, args: Sequence[Any] = (), option: Optional[QueryOption] = None
) -> Tuple[str, List[Any]]:
    """
    Append ``Offset ? Limit ?`` to a query when an option is given.

    Args:
        query: SELECT query using ``?`` placeholders
        args: Arguments of ``query``
        option: Pagination option, or None to leave the query unchanged

    Returns:
        Tuple of (query, arguments including offset and limit)

    Example:
        >>> with_options("select * from person;", [], page_option(3, 10))
        ('select * from person Offset ? Limit ?', [20, 10])
    """
    if option is None:
        return query, list(args)

    query = trim_semicolon(query) + " Offset ? Limit ?"
    return query, [*args, option.offset, option.limit]
