"""
DevJournal Backend — Entry Service
====================================

What:  Business logic for journal entries: CRUD, the public feed, search,
       and AI summaries.
How:   Every single-entry read goes through access.ensure_readable and every
       mutation through access.ensure_writable, so the 404-versus-403 policy
       lives in one place.
Who:   Called by routes/entries.py and routes/users.py.

Listing endpoints:
    GET /entries/my        → caller's entries, optional isPublic + search
    GET /entries           → public feed (with author)
    GET /entries/search    → public feed filtered by q
    GET /users/{id}/entries→ one user's public entries
    All newest first, paginated with services.pagination.paginate.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import Select, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devjournal.exceptions import DatabaseError, NotFoundError
from devjournal.models.entry import Entry
from devjournal.models.snippet import Snippet
from devjournal.models.user import User
from devjournal.schemas.common import Page
from devjournal.schemas.entry import EntryCreate, EntryResponse, EntryUpdate
from devjournal.services import access
from devjournal.services.llm_base import Summarizer
from devjournal.services.pagination import apply_search, paginate
from devjournal.services.tag_service import tag_service

logger = logging.getLogger(__name__)


class EntryService:
    """Stateless service; every method receives the request's AsyncSession."""

    # ── Loading ───────────────────────────────────────────────────────────

    async def _get(self, db: AsyncSession, entry_id: uuid.UUID) -> Optional[Entry]:
        result = await db.execute(
            select(Entry)
            .where(Entry.id == entry_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _page(
        self,
        db: AsyncSession,
        stmt: Select,
        page: int,
        limit: int,
        viewer_id: Optional[str],
        include_author: bool,
    ) -> Page[EntryResponse]:
        try:
            entries, total = await paginate(db, stmt.order_by(Entry.created_at.desc()), page, limit)
        except SQLAlchemyError as e:
            logger.error("Database error listing entries: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve entries. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return Page[EntryResponse].build(
            [EntryResponse.from_entry(e, viewer_id, include_author=include_author) for e in entries],
            total,
            page,
            limit,
        )

    # ══════════════════════════════════════════════════════════════════════
    # Create
    # ══════════════════════════════════════════════════════════════════════

    async def create_entry(self, db: AsyncSession, data: EntryCreate, caller: User) -> EntryResponse:
        entry = Entry(
            title=data.title,
            content=data.content,
            summary=data.summary,
            is_public=data.is_public,
            user_id=caller.id,
        )
        db.add(entry)
        if data.tags:
            await tag_service.attach_on_create(db, entry, data.tags)
        await db.flush()
        logger.info("Entry %s created by %s (public=%s)", entry.id, caller.id, entry.is_public)

        return EntryResponse.from_entry(await self._get(db, entry.id), viewer_id=caller.id)

    # ══════════════════════════════════════════════════════════════════════
    # Read
    # ══════════════════════════════════════════════════════════════════════

    async def get_entry(
        self, db: AsyncSession, entry_id: uuid.UUID, caller: Optional[User]
    ) -> EntryResponse:
        """Private entries of other users are reported as missing."""
        entry = access.ensure_readable(await self._get(db, entry_id), caller, "entry", str(entry_id))
        return EntryResponse.from_entry(
            entry,
            viewer_id=caller.id if caller else None,
            include_author=True,
        )

    async def list_my_entries(
        self,
        db: AsyncSession,
        caller: User,
        page: int = 1,
        limit: int = 10,
        is_public: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Page[EntryResponse]:
        stmt = select(Entry).where(Entry.user_id == caller.id)
        if is_public is not None:
            stmt = stmt.where(Entry.is_public.is_(is_public))
        stmt = apply_search(stmt, search, Entry.title, Entry.content)
        return await self._page(db, stmt, page, limit, caller.id, include_author=False)

    async def list_public_entries(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> Page[EntryResponse]:
        stmt = select(Entry).where(Entry.is_public.is_(True))
        stmt = apply_search(stmt, search, Entry.title, Entry.content)
        return await self._page(db, stmt, page, limit, None, include_author=True)

    async def search_public_entries(
        self, db: AsyncSession, q: str, page: int = 1, limit: int = 10
    ) -> Page[EntryResponse]:
        return await self.list_public_entries(db, page=page, limit=limit, search=q)

    async def list_user_public_entries(
        self, db: AsyncSession, user_id: str, page: int = 1, limit: int = 10
    ) -> Page[EntryResponse]:
        if await db.get(User, user_id) is None:
            raise NotFoundError(resource="user", resource_id=user_id, message="User not found")
        stmt = select(Entry).where(Entry.user_id == user_id, Entry.is_public.is_(True))
        return await self._page(db, stmt, page, limit, None, include_author=True)

    # ══════════════════════════════════════════════════════════════════════
    # Update / Delete
    # ══════════════════════════════════════════════════════════════════════

    async def _get_owned(self, db: AsyncSession, entry_id: uuid.UUID, caller: User) -> Entry:
        return access.ensure_writable(
            await self._get(db, entry_id),
            caller,
            "entry",
            str(entry_id),
            message="You do not have permission to access this entry",
        )

    async def update_entry(
        self, db: AsyncSession, entry_id: uuid.UUID, data: EntryUpdate, caller: User
    ) -> EntryResponse:
        entry = await self._get_owned(db, entry_id, caller)

        for field_name, value in data.model_dump(exclude_unset=True).items():
            # title/content/isPublic are NOT NULL; an explicit null leaves them as-is
            if value is None and field_name != "summary":
                continue
            setattr(entry, field_name, value)

        await db.flush()
        return EntryResponse.from_entry(await self._get(db, entry_id), viewer_id=caller.id)

    async def delete_entry(self, db: AsyncSession, entry_id: uuid.UUID, caller: User) -> None:
        """Delete the entry; its snippets survive with the link cleared."""
        entry = await self._get_owned(db, entry_id, caller)
        await db.execute(
            update(Snippet).where(Snippet.entry_id == entry.id).values(entry_id=None)
        )
        await db.delete(entry)
        await db.flush()
        logger.info("Entry %s deleted by %s", entry_id, caller.id)

    # ══════════════════════════════════════════════════════════════════════
    # AI summary
    # ══════════════════════════════════════════════════════════════════════

    async def summarize_entry(
        self,
        db: AsyncSession,
        entry_id: uuid.UUID,
        caller: User,
        summarizer: Summarizer,
    ) -> EntryResponse:
        """
        Generate and store a summary. Owner only, even for public entries.

        Raises:
            LLMServiceError: the model failed (500, not retried)
        """
        entry = access.ensure_writable(
            await self._get(db, entry_id),
            caller,
            "entry",
            str(entry_id),
            message="You can only summarize your own entries",
        )

        entry.summary = await summarizer.summarize(entry.content)
        await db.flush()
        logger.info("Entry %s summarized (%d chars)", entry_id, len(entry.summary))

        return EntryResponse.from_entry(await self._get(db, entry_id), viewer_id=caller.id)


# ── Singleton Instance ────────────────────────────────────────────────────
entry_service = EntryService()
