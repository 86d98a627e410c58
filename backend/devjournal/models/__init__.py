# Models package init
"""
DevJournal Backend — ORM Models
================================

Importing this package registers every table on Base.metadata, which
Alembic and the test suite rely on.
"""

from devjournal.models.user import User
from devjournal.models.entry import Entry, entry_tags
from devjournal.models.snippet import Snippet, SUPPORTED_LANGUAGES
from devjournal.models.tag import Tag

__all__ = ["User", "Entry", "Snippet", "Tag", "entry_tags", "SUPPORTED_LANGUAGES"]
