"""
DevJournal Backend — Tag Service (Tag Association Manager + Catalogue)
========================================================================

What:  Resolves tag names to Tag rows (creating missing ones) and applies
       add / remove / replace on one entry's tag set. Also serves the
       global tag catalogue (list, popular, search, per-tag entries).

Normalization:
    Every incoming name is trimmed and lowercased; duplicates within one
    request collapse to one, keeping first-seen order.

Find-or-create:
    1. SELECT existing tags by name
    2. INSERT the missing names with ON CONFLICT (name) DO NOTHING
    3. SELECT again
    A concurrent request that creates the same name between 1 and 2 is
    absorbed by the ON CONFLICT clause, so creation never fails on a
    duplicate and both callers end up with the same row.

Set operations (entry owner only, via the access gate):
    ADD      → current ∪ requested
    REMOVE   → current − requested (existing tags only, never creates)
    REPLACE  → exactly requested (empty list clears)
    Links are written to entry_tags directly with ON CONFLICT (entry_id,
    tag_id) DO NOTHING, then the entry is re-read, so concurrent ADDs of the
    same name never fail on the link's primary key.
"""

import logging
import uuid
from typing import Iterable, List, Sequence

from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devjournal.exceptions import DatabaseError, NotFoundError
from devjournal.models.entry import Entry, entry_tags
from devjournal.models.tag import Tag
from devjournal.models.user import User, utcnow
from devjournal.schemas.common import Page
from devjournal.schemas.entry import EntryResponse
from devjournal.schemas.tag import TagResponse, TagWithCount, normalize_tag_name
from devjournal.services import access
from devjournal.services.pagination import paginate

logger = logging.getLogger(__name__)


def normalize_tag_names(names: Iterable[str]) -> List[str]:
    """
    Trim, lowercase and dedupe.

    Example:
        ["JavaScript", " react ", "javascript", ""] → ["javascript", "react"]
    """
    seen = []
    for raw in names:
        name = normalize_tag_name(raw)
        if name and name not in seen:
            seen.append(name)
    return seen


class TagService:
    """Stateless service; every method receives the request's AsyncSession."""

    # ══════════════════════════════════════════════════════════════════════
    # Find-or-create
    # ══════════════════════════════════════════════════════════════════════

    async def get_tags_by_names(self, db: AsyncSession, names: Sequence[str]) -> List[Tag]:
        if not names:
            return []
        result = await db.execute(select(Tag).where(Tag.name.in_(names)))
        return list(result.scalars().all())

    def _insert_ignoring_duplicates(
        self, db: AsyncSession, table, rows: List[dict], index_elements: List[str]
    ):
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(table).values(rows).on_conflict_do_nothing(index_elements=index_elements)
        if dialect == "sqlite":
            return sqlite_insert(table).values(rows).on_conflict_do_nothing(
                index_elements=index_elements
            )
        # Other backends: plain insert; duplicates surface as IntegrityError
        return insert(table).values(rows)

    async def find_or_create_tags(self, db: AsyncSession, names: Iterable[str]) -> List[Tag]:
        """Return Tag rows for every normalized name, creating the missing ones."""
        wanted = normalize_tag_names(names)
        if not wanted:
            return []

        existing = await self.get_tags_by_names(db, wanted)
        missing = [name for name in wanted if name not in {t.name for t in existing}]

        if missing:
            now = utcnow()
            rows = [{"id": uuid.uuid4(), "name": name, "created_at": now} for name in missing]
            await db.execute(self._insert_ignoring_duplicates(db, Tag.__table__, rows, ["name"]))
            logger.info("Created tags: %s", ", ".join(missing))
            existing = await self.get_tags_by_names(db, wanted)

        by_name = {tag.name: tag for tag in existing}
        return [by_name[name] for name in wanted if name in by_name]

    # ══════════════════════════════════════════════════════════════════════
    # Entry tag-set operations
    # ══════════════════════════════════════════════════════════════════════

    async def _load_owned_entry(self, db: AsyncSession, entry_id: uuid.UUID, caller: User) -> Entry:
        entry = await db.get(Entry, entry_id, populate_existing=True)
        return access.ensure_writable(
            entry,
            caller,
            "entry",
            str(entry_id),
            message="You do not have permission to modify this entry",
        )

    async def _refetch(self, db: AsyncSession, entry: Entry, caller: User) -> EntryResponse:
        entry.updated_at = utcnow()
        await db.flush()
        result = await db.execute(
            select(Entry)
            .where(Entry.id == entry.id)
            .execution_options(populate_existing=True)
        )
        return EntryResponse.from_entry(result.scalar_one(), viewer_id=caller.id)

    async def _link(self, db: AsyncSession, entry_id: uuid.UUID, tags: List[Tag]) -> None:
        """Insert entry_tags rows; links that already exist are skipped."""
        if not tags:
            return
        rows = [{"entry_id": entry_id, "tag_id": tag.id} for tag in tags]
        await db.execute(
            self._insert_ignoring_duplicates(db, entry_tags, rows, ["entry_id", "tag_id"])
        )

    async def _unlink(self, db: AsyncSession, entry_id: uuid.UUID, condition=None) -> None:
        stmt = delete(entry_tags).where(entry_tags.c.entry_id == entry_id)
        if condition is not None:
            stmt = stmt.where(condition)
        await db.execute(stmt)

    async def add_tags(
        self, db: AsyncSession, entry_id: uuid.UUID, names: Iterable[str], caller: User
    ) -> EntryResponse:
        """
        Union `names` into the entry's tags.

        Links are written with ON CONFLICT DO NOTHING, so two concurrent adds
        of the same name both succeed and the link exists once.
        """
        entry = await self._load_owned_entry(db, entry_id, caller)
        await self._link(db, entry.id, await self.find_or_create_tags(db, names))
        return await self._refetch(db, entry, caller)

    async def remove_tags(
        self, db: AsyncSession, entry_id: uuid.UUID, names: Iterable[str], caller: User
    ) -> EntryResponse:
        """Detach the named tags; unknown or unattached names are ignored."""
        entry = await self._load_owned_entry(db, entry_id, caller)
        doomed = [tag.id for tag in await self.get_tags_by_names(db, normalize_tag_names(names))]
        if doomed:
            await self._unlink(db, entry.id, entry_tags.c.tag_id.in_(doomed))
        return await self._refetch(db, entry, caller)

    async def replace_tags(
        self, db: AsyncSession, entry_id: uuid.UUID, names: Iterable[str], caller: User
    ) -> EntryResponse:
        """Make the entry's tags exactly `names`. An empty list clears them."""
        entry = await self._load_owned_entry(db, entry_id, caller)
        tags = await self.find_or_create_tags(db, names)
        keep = [tag.id for tag in tags]
        await self._unlink(db, entry.id, entry_tags.c.tag_id.not_in(keep) if keep else None)
        await self._link(db, entry.id, tags)
        return await self._refetch(db, entry, caller)

    async def attach_on_create(self, db: AsyncSession, entry: Entry, names: Iterable[str]) -> None:
        """Attach tags to an entry that is being created (no ownership check needed)."""
        entry.tags = await self.find_or_create_tags(db, names)

    # ══════════════════════════════════════════════════════════════════════
    # Catalogue
    # ══════════════════════════════════════════════════════════════════════

    async def create_tag(self, db: AsyncSession, name: str) -> TagResponse:
        tags = await self.find_or_create_tags(db, [name])
        return TagResponse.model_validate(tags[0])

    async def list_tags(self, db: AsyncSession) -> List[TagResponse]:
        result = await db.execute(select(Tag).order_by(Tag.name.asc()))
        return [TagResponse.model_validate(tag) for tag in result.scalars().all()]

    def _with_counts(self):
        entry_count = func.count(entry_tags.c.entry_id).label("entry_count")
        return (
            select(Tag, entry_count)
            .outerjoin(entry_tags, entry_tags.c.tag_id == Tag.id)
            .group_by(Tag.id, Tag.name, Tag.created_at)
        ), entry_count

    @staticmethod
    def _tag_with_count(tag: Tag, count: int) -> TagWithCount:
        return TagWithCount(id=tag.id, name=tag.name, created_at=tag.created_at, entry_count=count)

    async def popular_tags(self, db: AsyncSession, limit: int = 20) -> List[TagWithCount]:
        """Tags ordered by how many entries carry them."""
        try:
            stmt, entry_count = self._with_counts()
            stmt = stmt.order_by(entry_count.desc(), Tag.name.asc()).limit(limit)
            rows = (await db.execute(stmt)).all()
        except SQLAlchemyError as e:
            logger.error("Database error loading popular tags: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not load popular tags. Please try again.")
        return [self._tag_with_count(tag, count) for tag, count in rows]

    async def search_tags(self, db: AsyncSession, q: str, limit: int = 10) -> List[TagResponse]:
        """Prefix search on the normalized name."""
        prefix = normalize_tag_name(q)
        stmt = select(Tag).order_by(Tag.name.asc()).limit(limit)
        if prefix:
            stmt = stmt.where(Tag.name.startswith(prefix, autoescape=True))
        result = await db.execute(stmt)
        return [TagResponse.model_validate(tag) for tag in result.scalars().all()]

    async def _get_by_name(self, db: AsyncSession, name: str) -> Tag:
        normalized = normalize_tag_name(name)
        result = await db.execute(select(Tag).where(Tag.name == normalized))
        tag = result.scalar_one_or_none()
        if tag is None:
            raise NotFoundError(resource="tag", resource_id=normalized, message="Tag not found")
        return tag

    async def get_tag(self, db: AsyncSession, name: str) -> TagWithCount:
        tag = await self._get_by_name(db, name)
        count = (
            await db.execute(
                select(func.count()).select_from(entry_tags).where(entry_tags.c.tag_id == tag.id)
            )
        ).scalar_one()
        return self._tag_with_count(tag, count)

    async def tag_entries(
        self, db: AsyncSession, name: str, page: int, limit: int
    ) -> Page[EntryResponse]:
        """Public entries carrying the tag, newest first."""
        tag = await self._get_by_name(db, name)
        stmt = (
            select(Entry)
            .join(entry_tags, entry_tags.c.entry_id == Entry.id)
            .where(entry_tags.c.tag_id == tag.id, Entry.is_public.is_(True))
            .order_by(Entry.created_at.desc())
        )
        entries, total = await paginate(db, stmt, page, limit)
        return Page[EntryResponse].build(
            [EntryResponse.from_entry(entry, viewer_id=None, include_author=True) for entry in entries],
            total,
            page,
            limit,
        )

    async def delete_tag(self, db: AsyncSession, name: str) -> None:
        """Detach the tag from every entry, then delete it."""
        tag = await self._get_by_name(db, name)
        await db.execute(delete(entry_tags).where(entry_tags.c.tag_id == tag.id))
        await db.delete(tag)
        await db.flush()
        logger.info("Deleted tag '%s'", tag.name)


# ── Singleton Instance ────────────────────────────────────────────────────
tag_service = TagService()
