"""
DevJournal Backend — Pagination and Search Helpers
====================================================

What:  Offset pagination and case-insensitive substring search shared by
       every list endpoint.

Contract:
    offset      = (page - 1) * limit
    totalPages  = ceil(total / limit)
    ordering    = whatever the caller's statement says (newest first by default)
"""

from typing import Any, List, Optional, Tuple

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from devjournal.schemas.common import page_offset

# Entries listings default to 10 per page; nobody may ask for more than 50
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_search(stmt: Select, search: Optional[str], *columns: Any) -> Select:
    """
    Narrow `stmt` to rows where any of `columns` contains `search`,
    ignoring case. Blank search terms leave the statement unchanged.
    """
    if not search or not search.strip():
        return stmt
    pattern = f"%{_escape_like(search.strip())}%"
    return stmt.where(or_(*(col.ilike(pattern, escape="\\") for col in columns)))


async def paginate(
    db: AsyncSession,
    stmt: Select,
    page: int,
    limit: int,
) -> Tuple[List[Any], int]:
    """
    Run `stmt` for one page and count the full result set.

    Returns:
        (items on the requested page, total matching rows)
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    result = await db.execute(stmt.offset(page_offset(page, limit)).limit(limit))
    return list(result.scalars().all()), total
