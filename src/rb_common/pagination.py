"""Offset pagination helpers shared by list endpoints.

Every paginated list returns {results, page, limit, total}. page and limit
are clamped rather than rejected so stale clients keep working.
"""

from typing import Any

from pydantic import BaseModel

MAX_LIMIT = 100
DEFAULT_LIMIT = 20


def clamp_page(page: int | None) -> int:
    return max(1, page or 1)


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return min(MAX_LIMIT, max(1, limit))


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


class PageResponse(BaseModel):
    results: list[Any]
    page: int
    limit: int
    total: int
