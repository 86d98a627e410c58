"""
DevJournal Backend — User Routes
==================================

/users/me and /users/username/{username} are declared before /users/{user_id}.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from devjournal.auth.dependencies import get_current_user
from devjournal.database import get_db_session
from devjournal.models.user import User
from devjournal.routes.params import PageParams
from devjournal.schemas.common import ErrorResponse, Page
from devjournal.schemas.entry import EntryResponse
from devjournal.schemas.user import PublicProfile, UserResponse, UserUpdate
from devjournal.services.entry_service import entry_service
from devjournal.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])

_USER_NOT_FOUND = {404: {"description": "User not found", "model": ErrorResponse}}


@router.get("/me", response_model=UserResponse, summary="The caller's profile")
async def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.patch(
    "/me",
    response_model=UserResponse,
    responses={409: {"description": "Username already taken", "model": ErrorResponse}},
    summary="Update the caller's profile",
)
async def update_me(
    body: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.update_profile(db, user, body)


@router.get(
    "/username/{username}",
    response_model=PublicProfile,
    responses=_USER_NOT_FOUND,
    summary="Public profile by username",
)
async def get_by_username(
    username: str, db: AsyncSession = Depends(get_db_session)
) -> PublicProfile:
    return await user_service.get_public_profile_by_username(db, username)


@router.get(
    "/{user_id}",
    response_model=PublicProfile,
    responses=_USER_NOT_FOUND,
    summary="Public profile by id",
)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db_session)) -> PublicProfile:
    return await user_service.get_public_profile(db, user_id)


@router.get(
    "/{user_id}/entries",
    response_model=Page[EntryResponse],
    responses=_USER_NOT_FOUND,
    summary="A user's public entries",
)
async def get_user_entries(
    user_id: str,
    params: PageParams = Depends(),
    db: AsyncSession = Depends(get_db_session),
) -> Page[EntryResponse]:
    return await entry_service.list_user_public_entries(
        db, user_id, page=params.page, limit=params.limit
    )
