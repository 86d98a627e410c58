"""
DevJournal Backend — Entry Schemas
====================================

EntryResponse is the single read shape for entries. The `user` block is
filled for public listings; `snippets` only ever contains what the viewer
is allowed to see (from_entry drops private snippets for non-owners).
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, field_validator

from devjournal.schemas.common import ApiModel
from devjournal.schemas.snippet import SnippetSummary
from devjournal.schemas.tag import TagResponse, validate_tag_name
from devjournal.schemas.user import UserSummary


class EntryCreate(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, description="Markdown body")
    summary: Optional[str] = Field(default=None, max_length=500)
    is_public: bool = Field(default=False, description="Private unless set")
    tags: List[str] = Field(
        default_factory=list,
        description="Tag names to attach (created when missing)",
    )

    @field_validator("tags")
    @classmethod
    def check_tags(cls, v: List[str]) -> List[str]:
        return [validate_tag_name(name) for name in v]


class EntryUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    summary: Optional[str] = Field(default=None, max_length=500)
    is_public: Optional[bool] = None


class EntryResponse(ApiModel):
    id: uuid.UUID
    title: str
    content: str
    summary: Optional[str] = None
    is_public: bool
    user_id: str
    created_at: datetime
    updated_at: datetime
    tags: List[TagResponse] = Field(default_factory=list)
    snippets: List[SnippetSummary] = Field(default_factory=list)
    user: Optional[UserSummary] = None

    @classmethod
    def from_entry(
        cls,
        entry: Any,
        viewer_id: Optional[str],
        include_author: bool = False,
    ) -> "EntryResponse":
        """
        Build the response for one viewer. Linked snippets the viewer may
        not read (private, not theirs) are dropped.
        """
        is_owner = viewer_id is not None and viewer_id == entry.user_id
        return cls(
            id=entry.id,
            title=entry.title,
            content=entry.content,
            summary=entry.summary,
            is_public=entry.is_public,
            user_id=entry.user_id,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            tags=[TagResponse.model_validate(t) for t in sorted(entry.tags, key=lambda t: t.name)],
            snippets=[
                SnippetSummary.model_validate(s)
                for s in entry.snippets
                if is_owner or s.is_public
            ],
            user=UserSummary.model_validate(entry.user) if include_author else None,
        )
