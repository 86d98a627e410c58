"""
DevJournal Backend — Entry Routes
===================================

What:  /entries CRUD, the public feed, search and AI summaries.
How:   Thin handlers; ownership and visibility live in the services.

Route order matters: /entries/my and /entries/search are declared before
/entries/{entry_id} so they are not parsed as ids.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from devjournal.auth.dependencies import get_current_user, get_optional_user, get_summarizer
from devjournal.database import get_db_session
from devjournal.models.user import User
from devjournal.routes.params import PageParams
from devjournal.schemas.common import ErrorResponse, MessageResponse, Page
from devjournal.schemas.entry import EntryCreate, EntryResponse, EntryUpdate
from devjournal.services.entry_service import entry_service
from devjournal.services.llm_base import Summarizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/entries", tags=["Entries"])

_AUTH_ERRORS = {
    401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
}
_OWNER_ERRORS = {
    **_AUTH_ERRORS,
    403: {"description": "Caller does not own the entry", "model": ErrorResponse},
    404: {"description": "Entry not found", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_AUTH_ERRORS,
    summary="Create a journal entry",
)
async def create_entry(
    body: EntryCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryResponse:
    """Entries are private unless `isPublic` is true. `tags` are created on demand."""
    return await entry_service.create_entry(db, body, user)


@router.get(
    "/my",
    response_model=Page[EntryResponse],
    responses=_AUTH_ERRORS,
    summary="List the caller's entries",
)
async def list_my_entries(
    params: PageParams = Depends(),
    is_public: Optional[bool] = Query(default=None, alias="isPublic"),
    search: Optional[str] = Query(default=None, max_length=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Page[EntryResponse]:
    return await entry_service.list_my_entries(
        db, user, page=params.page, limit=params.limit, is_public=is_public, search=search
    )


@router.get(
    "",
    response_model=Page[EntryResponse],
    summary="Public entry feed",
)
async def list_public_entries(
    params: PageParams = Depends(),
    search: Optional[str] = Query(default=None, max_length=200),
    db: AsyncSession = Depends(get_db_session),
) -> Page[EntryResponse]:
    return await entry_service.list_public_entries(
        db, page=params.page, limit=params.limit, search=search
    )


@router.get(
    "/search",
    response_model=Page[EntryResponse],
    summary="Search public entries",
)
async def search_entries(
    q: str = Query(default="", max_length=200, description="Matched against title and content"),
    params: PageParams = Depends(),
    db: AsyncSession = Depends(get_db_session),
) -> Page[EntryResponse]:
    return await entry_service.search_public_entries(db, q, page=params.page, limit=params.limit)


@router.get(
    "/{entry_id}",
    response_model=EntryResponse,
    responses={404: {"description": "Entry not found", "model": ErrorResponse}},
    summary="Get one entry",
)
async def get_entry(
    entry_id: UUID,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryResponse:
    """Private entries are only visible to their owner; everyone else gets 404."""
    return await entry_service.get_entry(db, entry_id, user)


@router.patch(
    "/{entry_id}",
    response_model=EntryResponse,
    responses=_OWNER_ERRORS,
    summary="Update an entry",
)
async def update_entry(
    entry_id: UUID,
    body: EntryUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryResponse:
    return await entry_service.update_entry(db, entry_id, body, user)


@router.delete(
    "/{entry_id}",
    response_model=MessageResponse,
    responses=_OWNER_ERRORS,
    summary="Delete an entry",
)
async def delete_entry(
    entry_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await entry_service.delete_entry(db, entry_id, user)
    return MessageResponse(message="Entry deleted successfully")


@router.post(
    "/{entry_id}/summarize",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **_OWNER_ERRORS,
        500: {"description": "Summarizer failed or is not configured", "model": ErrorResponse},
    },
    summary="Generate an AI summary",
)
async def summarize_entry(
    entry_id: UUID,
    user: User = Depends(get_current_user),
    summarizer: Summarizer = Depends(get_summarizer),
    db: AsyncSession = Depends(get_db_session),
) -> EntryResponse:
    """
    Replace the entry's summary with a fresh one from the model.

    Owner only, even when the entry is public. Failures are not retried.
    """
    return await entry_service.summarize_entry(db, entry_id, user, summarizer)
