"""
DevJournal Backend — Tag Model
===============================

Tags are global: nobody owns them, and the unique constraint on the
normalized name is what makes concurrent find-or-create safe
(see services/tag_service.py).
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from devjournal.database import Base
from devjournal.models.user import utcnow


class Tag(Base):
    """A normalized (lowercase, trimmed) tag name."""

    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Normalized name matching [a-z0-9_-]+",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Tag(name='{self.name}')>"
