"""
DevJournal Backend — User Model
================================

What:  The `users` table: one row per person who has ever presented a valid
       bearer token.
How:   Rows are created lazily by just-in-time provisioning
       (services/user_service.py). The primary key IS the identity provider's
       subject id, so later lookups by id succeed without a mapping table.

Constraints:
    - id:       provider subject id (string, not generated here)
    - email:    unique; mandatory for a local identity
    - username: unique, 3-30 chars of [A-Za-z0-9_]
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from devjournal.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A DevJournal account mirrored from the identity provider."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Identity provider subject id",
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Primary email from the identity provider",
    )
    username: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        unique=True,
        comment="Public handle: 3-30 chars of [A-Za-z0-9_]",
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Display name",
    )

    # ── Optional profile ──────────────────────────────────────────────────
    avatar: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    github_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    linkedin_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # ── Timestamps ────────────────────────────────────────────────────────
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

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
