"""
DevJournal Backend — Snippet Schemas
======================================
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from devjournal.models.snippet import SUPPORTED_LANGUAGES
from devjournal.schemas.common import ApiModel
from devjournal.schemas.user import UserSummary


def validate_language(value: str) -> str:
    language = value.strip().lower()
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language '{value}'. Must be one of: {', '.join(SUPPORTED_LANGUAGES)}"
        )
    return language


class EntryBrief(ApiModel):
    """The entry a snippet is linked to."""
    id: uuid.UUID
    title: str


class SnippetSummary(ApiModel):
    """Snippet as embedded inside an entry response."""
    id: uuid.UUID
    title: str
    code: str
    language: str
    description: Optional[str] = None
    is_public: bool
    created_at: datetime
    updated_at: datetime


class SnippetResponse(SnippetSummary):
    user_id: str
    entry_id: Optional[uuid.UUID] = None
    entry: Optional[EntryBrief] = None
    user: Optional[UserSummary] = None


class SnippetCreate(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1)
    language: str
    description: Optional[str] = Field(default=None, max_length=1000)
    is_public: bool = False
    entry_id: Optional[uuid.UUID] = Field(
        default=None,
        description="Link to one of the caller's own entries",
    )

    @field_validator("language")
    @classmethod
    def check_language(cls, v: str) -> str:
        return validate_language(v)


class SnippetUpdate(ApiModel):
    """
    PATCH body. Omitted fields are unchanged; an explicit `entryId: null`
    unlinks the snippet from its entry.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    code: Optional[str] = Field(default=None, min_length=1)
    language: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    is_public: Optional[bool] = None
    entry_id: Optional[uuid.UUID] = None

    @field_validator("language")
    @classmethod
    def check_language(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return validate_language(v)
