"""
DevJournal Backend — User Provisioning Tests
==============================================

What we test:
    ✅ username derivation from emails (pure functions)
    ✅ first sight creates exactly one user; later calls return it unchanged
    ✅ lookup falls back to email when the subject id is new
    ✅ a taken base username gets a suffix
    ✅ a valid, free metadata username is preferred
    ✅ duplicate-key on insert is retried and resolves to the existing row
    ✅ profile updates reject a username held by someone else
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from devjournal.auth.identity import Principal
from devjournal.exceptions import AuthenticationError, ConflictError
from devjournal.models.user import User
from devjournal.schemas.user import UserUpdate
from devjournal.services.user_service import (
    UserService,
    display_name_for,
    is_valid_username,
    username_base,
)


class TestNameDerivation:

    @pytest.mark.parametrize(
        "email,expected",
        [
            ("TestUser@example.com", "testuser"),
            ("john.doe+dev@x.io", "johndoedev"),
            ("a@x.io", "user_a"),
            ("---@x.io", "user"),
            ("averyveryverylongemailaddress@x.io", "averyveryverylongema"),
        ],
    )
    def test_username_base(self, email, expected):
        assert username_base(email) == expected

    def test_display_name_prefers_metadata(self):
        principal = Principal("s", "jane@x.io", {"full_name": "  Jane Roe "})
        assert display_name_for(principal) == "Jane Roe"

    def test_display_name_falls_back_to_local_part(self):
        assert display_name_for(Principal("s", "jane@x.io")) == "jane"

    @pytest.mark.parametrize("candidate", ["ab", "has space", "x" * 31, None, 42])
    def test_invalid_usernames(self, candidate):
        assert not is_valid_username(candidate)


class TestProvisioning:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_first_sight_creates_user(self, db_session):
        principal = Principal("sub-1", "testuser@example.com", {"name": "Test User"})

        user = await self.service.get_or_create_user(db_session, principal)

        assert user.id == "sub-1"
        assert user.email == "testuser@example.com"
        assert user.username == "testuser"
        assert user.name == "Test User"

    @pytest.mark.asyncio
    async def test_repeat_calls_return_same_row(self, db_session):
        principal = Principal("sub-1", "testuser@example.com")
        first = await self.service.get_or_create_user(db_session, principal)
        second = await self.service.get_or_create_user(db_session, principal)

        assert first.id == second.id
        count = (await db_session.execute(select(func.count()).select_from(User))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_email_fallback_returns_existing_user(self, db_session):
        first = await self.service.get_or_create_user(
            db_session, Principal("sub-old", "same@example.com")
        )
        found = await self.service.get_or_create_user(
            db_session, Principal("sub-new", "same@example.com")
        )
        assert found.id == first.id == "sub-old"

    @pytest.mark.asyncio
    async def test_taken_base_username_gets_suffix(self, db_session):
        first = await self.service.get_or_create_user(
            db_session, Principal("sub-1", "testuser@example.com")
        )
        second = await self.service.get_or_create_user(
            db_session, Principal("sub-2", "testuser@different.com")
        )

        assert first.username == "testuser"
        assert second.username != first.username
        assert second.username.startswith("testuser")
        assert len(second.username) == len("testuser") + 4

    @pytest.mark.asyncio
    async def test_metadata_username_is_used_when_free(self, db_session):
        user = await self.service.get_or_create_user(
            db_session, Principal("sub-1", "someone@example.com", {"username": "coder_42"})
        )
        assert user.username == "coder_42"

    @pytest.mark.asyncio
    async def test_invalid_metadata_username_is_ignored(self, db_session):
        user = await self.service.get_or_create_user(
            db_session, Principal("sub-1", "someone@example.com", {"username": "no spaces!"})
        )
        assert user.username == "someone"

    @pytest.mark.asyncio
    async def test_missing_email_is_rejected(self, db_session):
        with pytest.raises(AuthenticationError):
            await self.service.get_or_create_user(db_session, Principal("sub-1", None))

    @pytest.mark.asyncio
    async def test_timestamp_fallback_when_suffixes_exhausted(self, db_session):
        await self.service.get_or_create_user(db_session, Principal("sub-1", "dup@example.com"))
        with patch.object(self.service, "is_username_available", AsyncMock(return_value=False)):
            username = await self.service.generate_username(
                db_session, Principal("sub-2", "dup@other.com")
            )
        assert username.startswith("dup")
        assert username[3:].isdigit()
        assert len(username) <= 30


def _result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestProvisioningRace:
    """The insert loses to a concurrent request: retry, then find the winner."""

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_duplicate_insert_refetches_existing_row(self, mock_db_session):
        winner = User(id="sub-1", email="race@example.com", username="race", name="race")
        mock_db_session.execute.side_effect = [
            _result(None),    # attempt 1: by id
            _result(None),    # attempt 1: by email
            _result(None),    # attempt 1: username "race" is free
            _result(winner),  # attempt 2: by id finds the concurrent insert
        ]
        mock_db_session.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate"))

        user = await self.service.get_or_create_user(
            mock_db_session, Principal("sub-1", "race@example.com")
        )

        assert user is winner
        mock_db_session.rollback.assert_awaited_once()
        mock_db_session.add.assert_called_once()

    @pytest.mark.asyncio
    async def test_persistent_collision_becomes_conflict(self, mock_db_session):
        mock_db_session.execute.return_value = _result(None)
        mock_db_session.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate"))

        with pytest.raises(ConflictError):
            await self.service.get_or_create_user(
                mock_db_session, Principal("sub-1", "race@example.com")
            )
        assert mock_db_session.rollback.await_count == 3


class TestProfileUpdate:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_update_fields(self, db_session):
        user = await self.service.get_or_create_user(db_session, Principal("sub-1", "me@x.io"))
        result = await self.service.update_profile(
            db_session,
            user,
            UserUpdate(name="New Name", bio="Hi", github_url="https://github.com/me"),
        )
        assert result.name == "New Name"
        assert result.bio == "Hi"
        assert result.github_url.startswith("https://github.com/me")

    @pytest.mark.asyncio
    async def test_taken_username_is_conflict(self, db_session):
        await self.service.get_or_create_user(db_session, Principal("sub-1", "taken@x.io"))
        other = await self.service.get_or_create_user(db_session, Principal("sub-2", "other@x.io"))

        with pytest.raises(ConflictError) as exc_info:
            await self.service.update_profile(db_session, other, UserUpdate(username="taken"))
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_keeping_own_username_is_allowed(self, db_session):
        user = await self.service.get_or_create_user(db_session, Principal("sub-1", "mine@x.io"))
        result = await self.service.update_profile(db_session, user, UserUpdate(username="mine"))
        assert result.username == "mine"
