"""
DevJournal Backend — User Schemas
===================================

Three views of a user:
    UserResponse    → the caller's own profile (GET/PATCH /users/me), includes email
    PublicProfile   → anyone's profile (GET /users/{id}, /users/username/{name}), no email
    UserSummary     → author block embedded in public entries and snippets
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, HttpUrl

from devjournal.schemas.common import ApiModel

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"


class UserSummary(ApiModel):
    id: str
    name: str
    username: str
    avatar: Optional[str] = None


class PublicProfile(ApiModel):
    id: str
    name: str
    username: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    created_at: datetime


class UserResponse(PublicProfile):
    email: str
    updated_at: datetime


class UserUpdate(ApiModel):
    """
    PATCH /users/me body. Omitted fields are left unchanged.

    username uniqueness is enforced by the service (409 on conflict).
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    username: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=30,
        pattern=USERNAME_PATTERN,
    )
    avatar: Optional[HttpUrl] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    github_url: Optional[HttpUrl] = None
    linkedin_url: Optional[HttpUrl] = None
