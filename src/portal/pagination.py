"""Offset pagination for list endpoints (``page``/``limit`` query parameters)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from fastapi import Query
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class PageParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
) -> PageParams:
    """FastAPI dependency reading ``page`` and ``limit``."""
    return PageParams(page=page, limit=limit)


@dataclass
class Page:
    items: list[Any]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def envelope(self, data: list[Any]) -> dict[str, Any]:
        """Build the ``{count, total, page, pages, data}`` response body."""
        return {
            "success": True,
            "count": len(data),
            "total": self.total,
            "page": self.page,
            "pages": self.pages,
            "data": data,
        }


async def paginate(db: AsyncSession, query: Select, params: PageParams) -> Page:  # type: ignore[type-arg]
    """Run ``query`` for one page and count the full result set.

    The query must already carry its filters and ordering.
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    result = await db.execute(query.offset(params.offset).limit(params.limit))
    items = list(result.scalars().unique().all())

    return Page(items=items, total=total, page=params.page, limit=params.limit)
