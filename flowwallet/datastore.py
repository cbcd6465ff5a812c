"""Pagination options shared by the data stores."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_LIMIT = 1000


@dataclass(frozen=True)
class ListOptions:
    """Limit and offset for a list query; a limit of -1 means no limit."""

    limit: int = DEFAULT_LIMIT
    offset: int = 0


def parse_list_options(limit: int, offset: int) -> ListOptions:
    """Normalise user supplied limit and offset values."""
    if limit == 0:
        limit = DEFAULT_LIMIT
    if limit < 0:
        limit = -1
        offset = 0
    if offset < 0:
        offset = 0
    return ListOptions(limit=limit, offset=offset)