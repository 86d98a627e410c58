"""
DevJournal Backend — Shared Query Parameters
"""

from fastapi import Query

from devjournal.services.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class PageParams:
    """`?page=&limit=` for every paginated listing. Used as Depends(PageParams)."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="1-based page number"),
        limit: int = Query(
            default=DEFAULT_PAGE_SIZE,
            ge=1,
            le=MAX_PAGE_SIZE,
            description=f"Items per page (max {MAX_PAGE_SIZE})",
        ),
    ):
        self.page = page
        self.limit = limit
