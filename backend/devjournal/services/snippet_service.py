"""
DevJournal Backend — Snippet Service
======================================

What:  CRUD for code snippets plus the public snippet browser.

Linking:
    A snippet may point at one entry. Both on create and whenever PATCH
    carries `entryId`, the target entry must exist (404) and belong to the
    caller (403). PATCH with `entryId: null` unlinks.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devjournal.exceptions import DatabaseError
from devjournal.models.entry import Entry
from devjournal.models.snippet import Snippet
from devjournal.models.user import User
from devjournal.schemas.snippet import SnippetCreate, SnippetResponse, SnippetUpdate
from devjournal.services import access
from devjournal.services.pagination import apply_search

logger = logging.getLogger(__name__)


def _response(snippet: Snippet, include_author: bool = True) -> SnippetResponse:
    response = SnippetResponse.model_validate(snippet)
    if not include_author:
        response.user = None
    return response


class SnippetService:
    """
    Snippet CRUD and listings.

    Stateless; every method receives the request's AsyncSession. Ownership
    and visibility decisions go through devjournal.services.access.
    """

    async def _get(self, db: AsyncSession, snippet_id: uuid.UUID) -> Optional[Snippet]:
        result = await db.execute(
            select(Snippet)
            .where(Snippet.id == snippet_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _check_link(self, db: AsyncSession, entry_id: uuid.UUID, caller: User) -> None:
        entry = await db.get(Entry, entry_id)
        access.ensure_can_link_entry(entry, caller, str(entry_id))

    # ── Create ────────────────────────────────────────────────────────────

    async def create_snippet(
        self, db: AsyncSession, data: SnippetCreate, caller: User
    ) -> SnippetResponse:
        if data.entry_id is not None:
            await self._check_link(db, data.entry_id, caller)

        snippet = Snippet(
            title=data.title,
            code=data.code,
            language=data.language,
            description=data.description,
            is_public=data.is_public,
            user_id=caller.id,
            entry_id=data.entry_id,
        )
        db.add(snippet)
        await db.flush()
        logger.info("Snippet %s created by %s (entry=%s)", snippet.id, caller.id, snippet.entry_id)

        return _response(await self._get(db, snippet.id), include_author=False)

    # ── Read ──────────────────────────────────────────────────────────────

    async def _list(self, db: AsyncSession, stmt, include_author: bool) -> List[SnippetResponse]:
        try:
            result = await db.execute(stmt.order_by(Snippet.created_at.desc()))
        except SQLAlchemyError as e:
            logger.error("Database error listing snippets: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve snippets. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return [_response(s, include_author=include_author) for s in result.scalars().all()]

    async def list_my_snippets(self, db: AsyncSession, caller: User) -> List[SnippetResponse]:
        """Every snippet the caller owns, newest first."""
        stmt = select(Snippet).where(Snippet.user_id == caller.id)
        return await self._list(db, stmt, include_author=False)

    async def list_public_snippets(
        self,
        db: AsyncSession,
        language: Optional[str] = None,
        username: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[SnippetResponse]:
        """
        Public snippets, newest first.

        Args:
            language: exact language match (case-insensitive)
            username: author's username
            search:   substring of title, description or code
        """
        stmt = select(Snippet).where(Snippet.is_public.is_(True))
        if language and language.strip():
            stmt = stmt.where(Snippet.language == language.strip().lower())
        if username and username.strip():
            stmt = stmt.join(User, User.id == Snippet.user_id).where(
                User.username == username.strip()
            )
        stmt = apply_search(stmt, search, Snippet.title, Snippet.description, Snippet.code)
        return await self._list(db, stmt, include_author=True)

    async def get_snippet(
        self, db: AsyncSession, snippet_id: uuid.UUID, caller: Optional[User]
    ) -> SnippetResponse:
        snippet = access.ensure_readable(
            await self._get(db, snippet_id), caller, "snippet", str(snippet_id)
        )
        return _response(snippet)

    # ── Update / Delete ───────────────────────────────────────────────────

    async def _get_owned(self, db: AsyncSession, snippet_id: uuid.UUID, caller: User) -> Snippet:
        return access.ensure_writable(
            await self._get(db, snippet_id),
            caller,
            "snippet",
            str(snippet_id),
            message="You do not have permission to modify this snippet",
        )

    async def update_snippet(
        self, db: AsyncSession, snippet_id: uuid.UUID, data: SnippetUpdate, caller: User
    ) -> SnippetResponse:
        snippet = await self._get_owned(db, snippet_id, caller)
        changes = data.model_dump(exclude_unset=True)

        if "entry_id" in changes:
            new_entry_id = changes.pop("entry_id")
            if new_entry_id is not None and new_entry_id != snippet.entry_id:
                await self._check_link(db, new_entry_id, caller)
            snippet.entry_id = new_entry_id

        for field_name, value in changes.items():
            # description is the only nullable field; other explicit nulls are ignored
            if value is None and field_name != "description":
                continue
            setattr(snippet, field_name, value)

        await db.flush()
        return _response(await self._get(db, snippet_id), include_author=False)

    async def delete_snippet(self, db: AsyncSession, snippet_id: uuid.UUID, caller: User) -> None:
        snippet = await self._get_owned(db, snippet_id, caller)
        await db.delete(snippet)
        await db.flush()
        logger.info("Snippet %s deleted by %s", snippet_id, caller.id)


# ── Singleton Instance ────────────────────────────────────────────────────
snippet_service = SnippetService()
