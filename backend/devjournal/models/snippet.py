"""
DevJournal Backend — Snippet Model
===================================

What:  Stored code snippets. A snippet may point at one of its owner's
       entries; that link is cleared (not cascaded) when the entry is deleted.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid, false, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devjournal.database import Base
from devjournal.models.user import User, utcnow

if TYPE_CHECKING:
    from devjournal.models.entry import Entry


# Languages the editor can highlight; anything else is rejected with 400
SUPPORTED_LANGUAGES = (
    "typescript",
    "javascript",
    "python",
    "java",
    "csharp",
    "cpp",
    "c",
    "go",
    "rust",
    "ruby",
    "php",
    "swift",
    "kotlin",
    "scala",
    "html",
    "css",
    "scss",
    "sql",
    "bash",
    "shell",
    "json",
    "yaml",
    "xml",
    "markdown",
    "plaintext",
)


class Snippet(Base):
    """A code snippet owned by one user, optionally linked to one of their entries."""

    __tablename__ = "snippets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
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
    entry_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("entries.id", ondelete="SET NULL"),
        nullable=True,
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

    user: Mapped[User] = relationship(lazy="selectin")
    entry: Mapped[Optional["Entry"]] = relationship(back_populates="snippets", lazy="selectin")

    __table_args__ = (
        Index("idx_snippets_created_at", "created_at"),
        Index("idx_snippets_user_id", "user_id"),
        Index("idx_snippets_entry_id", "entry_id"),
        Index("idx_snippets_language", "language"),
    )

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, language='{self.language}', is_public={self.is_public})>"
