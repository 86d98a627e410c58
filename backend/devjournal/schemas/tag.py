"""
DevJournal Backend — Tag Schemas
==================================

Tag names are normalized (trimmed, lowercased) before validation, so
" React " is accepted and stored as "react".
"""

import re
import uuid
from datetime import datetime
from typing import List

from pydantic import Field, field_validator

from devjournal.schemas.common import ApiModel

TAG_NAME_MAX_LENGTH = 50
_TAG_NAME_RE = re.compile(r"^[a-z0-9_-]+$")


def normalize_tag_name(name: str) -> str:
    return name.strip().lower()


def validate_tag_name(name: str) -> str:
    """Normalize one tag name and reject anything outside [a-z0-9_-]{1,50}."""
    normalized = normalize_tag_name(name)
    if not normalized:
        raise ValueError("Tag name must not be empty")
    if len(normalized) > TAG_NAME_MAX_LENGTH:
        raise ValueError(f"Tag name must be at most {TAG_NAME_MAX_LENGTH} characters")
    if not _TAG_NAME_RE.match(normalized):
        raise ValueError(
            "Tag name can only contain letters, numbers, hyphens, and underscores"
        )
    return normalized


# ── Responses ─────────────────────────────────────────────────────────────

class TagResponse(ApiModel):
    id: uuid.UUID
    name: str
    created_at: datetime


class TagWithCount(TagResponse):
    entry_count: int = Field(default=0, ge=0, description="Entries carrying this tag")


# ── Requests ──────────────────────────────────────────────────────────────

class TagCreate(ApiModel):
    name: str

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return validate_tag_name(v)


class AddTagsRequest(ApiModel):
    """POST /entries/{id}/tags — at least one valid name."""
    tags: List[str] = Field(min_length=1)

    @field_validator("tags")
    @classmethod
    def check_names(cls, v: List[str]) -> List[str]:
        return [validate_tag_name(name) for name in v]


class ReplaceTagsRequest(ApiModel):
    """PUT /entries/{id}/tags — an empty list clears every tag."""
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def check_names(cls, v: List[str]) -> List[str]:
        return [validate_tag_name(name) for name in v]


class RemoveTagsRequest(ApiModel):
    """DELETE /entries/{id}/tags — names that are not attached are ignored."""
    tags: List[str] = Field(min_length=1)
