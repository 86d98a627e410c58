"""
DevJournal Backend — User Service (Just-in-time Provisioning + Profiles)
=========================================================================

What:  Maps a verified Principal to a local User, creating it on first
       sight, and serves the profile endpoints.
Who:   get_or_create_user() is called by the auth dependencies on every
       authenticated request; the rest by routes/users.py.

Provisioning flow:
    1. Look up by subject id (authoritative), then by email (fallback).
       Found → return unchanged (no profile sync on login).
    2. No email on the principal → AuthenticationError.
    3. Pick a display name: metadata name / full_name / display_name, else
       the email's local part.
    4. Pick a username:
         metadata candidate, if valid and free
         → email local part reduced to [a-z0-9_], max 20 chars
         → base + random 4-digit suffix (up to USERNAME_SUFFIX_ATTEMPTS tries)
         → base + millisecond timestamp
    5. Insert with id = subject id and commit.

Concurrency:
    Two first requests for the same new principal can both reach step 5.
    The loser's insert hits the unique constraint; the session is rolled
    back and the whole lookup-then-insert is retried (tenacity), which now
    finds the winner's row.
"""

import logging
import random
import re
import time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
)

from devjournal.auth.identity import Principal
from devjournal.config import settings
from devjournal.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
)
from devjournal.models.user import User
from devjournal.schemas.user import PublicProfile, UserResponse, UserUpdate

logger = logging.getLogger(__name__)

USERNAME_BASE_MAX_LENGTH = 20
USERNAME_MAX_LENGTH = 30
_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,30}$")
_DISPLAY_NAME_KEYS = ("name", "full_name", "display_name")


class ProvisioningRace(Exception):
    """Another request inserted a conflicting user row first."""


# ══════════════════════════════════════════════════════════════════════════
# Name derivation (pure functions)
# ══════════════════════════════════════════════════════════════════════════

def email_local_part(email: str) -> str:
    return email.split("@", 1)[0]


def username_base(email: str) -> str:
    """
    Reduce an email's local part to a username stem.

    Examples:
        "TestUser@example.com"   → "testuser"
        "john.doe+dev@x.io"      → "johndoedev"
        "a@x.io"                 → "user_a"
    """
    base = re.sub(r"[^a-z0-9_]", "", email_local_part(email).lower())
    base = base[:USERNAME_BASE_MAX_LENGTH]
    if len(base) < 3:
        base = f"user_{base}" if base else "user"
    return base


def display_name_for(principal: Principal) -> str:
    for key in _DISPLAY_NAME_KEYS:
        value = principal.metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()[:100]
    return email_local_part(principal.email or "")[:100] or "DevJournal user"


def is_valid_username(candidate: object) -> bool:
    return isinstance(candidate, str) and bool(_USERNAME_RE.match(candidate))


class UserService:
    """
    Stateless service; every method receives the request's AsyncSession.
    """

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_by_id(self, db: AsyncSession, user_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def is_username_available(self, db: AsyncSession, username: str) -> bool:
        result = await db.execute(select(User.id).where(User.username == username))
        return result.scalar_one_or_none() is None

    # ══════════════════════════════════════════════════════════════════════
    # Just-in-time provisioning
    # ══════════════════════════════════════════════════════════════════════

    async def get_or_create_user(self, db: AsyncSession, principal: Principal) -> User:
        """
        Return the local User for a verified principal, creating it if absent.

        Raises:
            AuthenticationError: principal has no email (and no existing row)
            ConflictError: the insert kept colliding after every retry
        """
        try:
            return await self._provision(db, principal)
        except ProvisioningRace:
            logger.error(
                "Gave up provisioning user %s after %d attempts",
                principal.subject_id,
                settings.provisioning_max_attempts,
            )
            raise ConflictError(
                "Could not create a local account for this identity. Please retry.",
                context={"subject_id": principal.subject_id},
            )

    @retry(
        retry=retry_if_exception_type(ProvisioningRace),
        stop=stop_after_attempt(settings.provisioning_max_attempts),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _provision(self, db: AsyncSession, principal: Principal) -> User:
        user = await self.get_by_id(db, principal.subject_id)
        if user is not None:
            return user

        if not principal.email:
            raise AuthenticationError(
                "The identity provider did not supply an email address",
                context={"subject_id": principal.subject_id},
            )

        user = await self.get_by_email(db, principal.email)
        if user is not None:
            return user

        username = await self.generate_username(db, principal)
        user = User(
            id=principal.subject_id,
            email=principal.email,
            username=username,
            name=display_name_for(principal),
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Someone else inserted this subject, email or username first
            await db.rollback()
            logger.warning(
                "Duplicate key while provisioning user %s; re-fetching",
                principal.subject_id,
            )
            raise ProvisioningRace(principal.subject_id)

        logger.info(
            "Provisioned local user %s with username '%s'",
            principal.subject_id,
            username,
        )
        return user

    async def generate_username(self, db: AsyncSession, principal: Principal) -> str:
        """Pick a free username for a new principal."""
        candidate = principal.metadata.get("username")
        if is_valid_username(candidate) and await self.is_username_available(db, candidate):
            return candidate

        base = username_base(principal.email or "")
        if await self.is_username_available(db, base):
            return base

        for _ in range(settings.username_suffix_attempts):
            candidate = f"{base}{random.randint(0, 9999):04d}"
            if await self.is_username_available(db, candidate):
                logger.info("Username '%s' taken; using '%s'", base, candidate)
                return candidate

        # Timestamp fallback: unique in practice, not pretty
        stamp = str(int(time.time() * 1000))
        fallback = f"{base[:USERNAME_MAX_LENGTH - len(stamp)]}{stamp}"
        logger.warning("Suffixes exhausted for '%s'; using '%s'", base, fallback)
        return fallback

    # ══════════════════════════════════════════════════════════════════════
    # Profiles
    # ══════════════════════════════════════════════════════════════════════

    async def get_public_profile(self, db: AsyncSession, user_id: str) -> PublicProfile:
        user = await self.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id, message="User not found")
        return PublicProfile.model_validate(user)

    async def get_public_profile_by_username(
        self, db: AsyncSession, username: str
    ) -> PublicProfile:
        user = await self.get_by_username(db, username)
        if user is None:
            raise NotFoundError(resource="user", message="User not found")
        return PublicProfile.model_validate(user)

    async def update_profile(
        self, db: AsyncSession, user: User, data: UserUpdate
    ) -> UserResponse:
        """
        Apply a PATCH /users/me body.

        Raises:
            ConflictError: requested username belongs to someone else
        """
        changes = data.model_dump(exclude_unset=True)

        new_username = changes.pop("username", None)
        if new_username is not None and new_username != user.username:
            if not await self.is_username_available(db, new_username):
                raise ConflictError("Username is already taken", field="username")
            user.username = new_username

        name = changes.pop("name", None)
        if name is not None:
            user.name = name

        for field_name, value in changes.items():
            setattr(user, field_name, str(value) if value is not None else None)

        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("Username is already taken", field="username")
        except SQLAlchemyError as e:
            logger.error("Database error updating user %s: %s", user.id, str(e))
            raise DatabaseError(
                message="Could not update your profile. Please try again.",
                context={"user_id": user.id},
            )

        return UserResponse.model_validate(user)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
