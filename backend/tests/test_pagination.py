"""
DevJournal Backend — Pagination Tests
=======================================

What we test:
    ✅ totalPages = ceil(total / limit), offset = (page - 1) * limit
    ✅ paginate() returns one page plus the full count
    ✅ search is a case-insensitive substring match with LIKE wildcards escaped
"""

import pytest
import pytest_asyncio
from sqlalchemy import select

from devjournal.auth.identity import Principal
from devjournal.models.entry import Entry
from devjournal.schemas.common import Page, page_offset, total_pages
from devjournal.services.pagination import apply_search, paginate
from devjournal.services.user_service import user_service


@pytest.mark.parametrize(
    "total,limit,expected",
    [(5, 2, 3), (4, 2, 2), (0, 10, 0), (1, 10, 1), (50, 50, 1), (51, 50, 2)],
)
def test_total_pages(total, limit, expected):
    assert total_pages(total, limit) == expected


def test_page_offset():
    assert page_offset(1, 10) == 0
    assert page_offset(3, 2) == 4


def test_page_envelope_serializes_camel_case():
    page = Page[int].build([1, 2], total=5, page=1, limit=2)
    assert page.model_dump(by_alias=True) == {
        "data": [1, 2],
        "total": 5,
        "page": 1,
        "limit": 2,
        "totalPages": 3,
    }


@pytest_asyncio.fixture
async def owner(db_session):
    return await user_service.get_or_create_user(
        db_session, Principal(subject_id="sub-p", email="pager@example.com")
    )


async def _add_entries(db_session, owner, titles):
    for title in titles:
        db_session.add(Entry(title=title, content=f"body of {title}", user_id=owner.id))
        await db_session.flush()


@pytest.mark.asyncio
async def test_paginate_returns_page_and_total(db_session, owner):
    await _add_entries(db_session, owner, [f"Entry {i}" for i in range(5)])
    stmt = select(Entry).order_by(Entry.created_at.desc())

    items, total = await paginate(db_session, stmt, page=1, limit=2)
    assert total == 5
    assert [e.title for e in items] == ["Entry 4", "Entry 3"]

    items, total = await paginate(db_session, stmt, page=3, limit=2)
    assert total == 5
    assert [e.title for e in items] == ["Entry 0"]


@pytest.mark.asyncio
async def test_search_ignores_case_and_escapes_wildcards(db_session, owner):
    await _add_entries(db_session, owner, ["Async Python", "100% coverage", "Rust notes"])

    stmt = apply_search(select(Entry), "PYTHON", Entry.title, Entry.content)
    items, total = await paginate(db_session, stmt, page=1, limit=10)
    assert total == 1 and items[0].title == "Async Python"

    stmt = apply_search(select(Entry), "%", Entry.title, Entry.content)
    items, total = await paginate(db_session, stmt, page=1, limit=10)
    assert [e.title for e in items] == ["100% coverage"]


@pytest.mark.asyncio
async def test_blank_search_leaves_statement_unchanged(db_session, owner):
    await _add_entries(db_session, owner, ["One", "Two"])
    stmt = apply_search(select(Entry), "   ", Entry.title)
    _, total = await paginate(db_session, stmt, page=1, limit=10)
    assert total == 2
