"""
DevJournal Backend — Entry Model and entry_tags Association
=============================================================

What:  Markdown journal entries plus the many-to-many link table to tags.

Visibility:
    is_public=False (default) → only the owner can see the entry; everyone
    else gets 404 from the access gate (services/access.py).

Relationships (all eager "selectin" because async sessions cannot lazy-load):
    Entry.user      → many-to-one User (author)
    Entry.tags      → many-to-many Tag through entry_tags
    Entry.snippets  → one-to-many Snippet (optional back-link)

Deletion:
    entry_tags rows go with the entry (ON DELETE CASCADE). Linked snippets
    survive with entry_id set to NULL (ON DELETE SET NULL at the database,
    and the ORM nulls loaded children the same way).
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    false,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devjournal.database import Base
from devjournal.models.user import User, utcnow

if TYPE_CHECKING:
    from devjournal.models.snippet import Snippet
    from devjournal.models.tag import Tag


entry_tags = Table(
    "entry_tags",
    Base.metadata,
    Column(
        "entry_id",
        Uuid,
        ForeignKey("entries.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Uuid,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Index("idx_entry_tags_tag_id", "tag_id"),
)


class Entry(Base):
    """A journal entry written by one user."""

    __tablename__ = "entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, comment="Markdown body")
    summary: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="AI-generated summary; overwritten on regeneration",
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # ── Relationships ─────────────────────────────────────────────────────
    user: Mapped[User] = relationship(lazy="selectin")
    tags: Mapped[List["Tag"]] = relationship(
        secondary=entry_tags,
        lazy="selectin",
        order_by="Tag.name",
    )
    snippets: Mapped[List["Snippet"]] = relationship(
        back_populates="entry",
        lazy="selectin",
        order_by="Snippet.created_at.desc()",
    )

    __table_args__ = (
        Index("idx_entries_created_at", "created_at"),
        Index("idx_entries_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, user_id='{self.user_id}', is_public={self.is_public})>"
