"""
DevJournal Backend — Tag Routes
=================================

Two routers:
    router        → /tags catalogue (list, popular, search, per-tag entries)
    entry_router  → /entries/{entry_id}/tags set operations (owner only)

    POST   /entries/{id}/tags   {"tags": [...]}  add (union)
    PUT    /entries/{id}/tags   {"tags": [...]}  replace ([] clears)
    DELETE /entries/{id}/tags   {"tags": [...]}  remove
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from devjournal.auth.dependencies import get_current_user
from devjournal.database import get_db_session
from devjournal.models.user import User
from devjournal.routes.params import PageParams
from devjournal.schemas.common import ErrorResponse, MessageResponse, Page
from devjournal.schemas.entry import EntryResponse
from devjournal.schemas.tag import (
    AddTagsRequest,
    RemoveTagsRequest,
    ReplaceTagsRequest,
    TagCreate,
    TagResponse,
    TagWithCount,
)
from devjournal.services.tag_service import tag_service

router = APIRouter(prefix="/tags", tags=["Tags"])
entry_router = APIRouter(prefix="/entries/{entry_id}/tags", tags=["Entry Tags"])

_TAG_NOT_FOUND = {404: {"description": "Tag not found", "model": ErrorResponse}}
_ENTRY_OWNER_ERRORS = {
    401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
    403: {"description": "Caller does not own the entry", "model": ErrorResponse},
    404: {"description": "Entry not found", "model": ErrorResponse},
}


# ══════════════════════════════════════════════════════════════════════════
# Catalogue
# ══════════════════════════════════════════════════════════════════════════

@router.post(
    "",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tag",
)
async def create_tag(
    body: TagCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TagResponse:
    """Idempotent: an existing tag with the same name is returned as-is."""
    return await tag_service.create_tag(db, body.name)


@router.get("", response_model=List[TagResponse], summary="List all tags")
async def list_tags(db: AsyncSession = Depends(get_db_session)) -> List[TagResponse]:
    return await tag_service.list_tags(db)


@router.get("/popular", response_model=List[TagWithCount], summary="Most used tags")
async def popular_tags(
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> List[TagWithCount]:
    return await tag_service.popular_tags(db, limit=limit)


@router.get("/search", response_model=List[TagResponse], summary="Search tags by prefix")
async def search_tags(
    q: str = Query(default="", max_length=50),
    limit: int = Query(default=10, ge=1, le=50),
    db: AsyncSession = Depends(get_db_session),
) -> List[TagResponse]:
    return await tag_service.search_tags(db, q, limit=limit)


@router.get("/{name}", response_model=TagWithCount, responses=_TAG_NOT_FOUND, summary="Get a tag")
async def get_tag(name: str, db: AsyncSession = Depends(get_db_session)) -> TagWithCount:
    return await tag_service.get_tag(db, name)


@router.get(
    "/{name}/entries",
    response_model=Page[EntryResponse],
    responses=_TAG_NOT_FOUND,
    summary="Public entries with a tag",
)
async def tag_entries(
    name: str,
    params: PageParams = Depends(),
    db: AsyncSession = Depends(get_db_session),
) -> Page[EntryResponse]:
    return await tag_service.tag_entries(db, name, page=params.page, limit=params.limit)


@router.delete(
    "/{name}",
    response_model=MessageResponse,
    responses=_TAG_NOT_FOUND,
    summary="Delete a tag",
)
async def delete_tag(
    name: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """Detaches the tag from every entry before deleting it."""
    await tag_service.delete_tag(db, name)
    return MessageResponse(message="Tag deleted successfully")


# ══════════════════════════════════════════════════════════════════════════
# Entry tag sets
# ══════════════════════════════════════════════════════════════════════════

@entry_router.post(
    "",
    response_model=EntryResponse,
    responses=_ENTRY_OWNER_ERRORS,
    summary="Add tags to an entry",
)
async def add_entry_tags(
    entry_id: UUID,
    body: AddTagsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryResponse:
    return await tag_service.add_tags(db, entry_id, body.tags, user)


@entry_router.put(
    "",
    response_model=EntryResponse,
    responses=_ENTRY_OWNER_ERRORS,
    summary="Replace an entry's tags",
)
async def replace_entry_tags(
    entry_id: UUID,
    body: ReplaceTagsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryResponse:
    return await tag_service.replace_tags(db, entry_id, body.tags, user)


@entry_router.delete(
    "",
    response_model=EntryResponse,
    responses=_ENTRY_OWNER_ERRORS,
    summary="Remove tags from an entry",
)
async def remove_entry_tags(
    entry_id: UUID,
    body: RemoveTagsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EntryResponse:
    return await tag_service.remove_tags(db, entry_id, body.tags, user)
