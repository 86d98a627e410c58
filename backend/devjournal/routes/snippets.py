"""
DevJournal Backend — Snippet Routes
=====================================

/snippets/my is declared before /snippets/{snippet_id}.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from devjournal.auth.dependencies import get_current_user, get_optional_user
from devjournal.database import get_db_session
from devjournal.models.user import User
from devjournal.schemas.common import ErrorResponse, MessageResponse
from devjournal.schemas.snippet import SnippetCreate, SnippetResponse, SnippetUpdate
from devjournal.services.snippet_service import snippet_service

router = APIRouter(prefix="/snippets", tags=["Snippets"])

_OWNER_ERRORS = {
    401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
    403: {"description": "Caller does not own the snippet or target entry", "model": ErrorResponse},
    404: {"description": "Snippet or entry not found", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=SnippetResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_OWNER_ERRORS,
    summary="Create a code snippet",
)
async def create_snippet(
    body: SnippetCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    """`entryId`, when given, must name one of the caller's own entries."""
    return await snippet_service.create_snippet(db, body, user)


@router.get("/my", response_model=List[SnippetResponse], summary="List the caller's snippets")
async def list_my_snippets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[SnippetResponse]:
    return await snippet_service.list_my_snippets(db, user)


@router.get("", response_model=List[SnippetResponse], summary="Browse public snippets")
async def list_public_snippets(
    language: Optional[str] = Query(default=None, max_length=50),
    user: Optional[str] = Query(default=None, max_length=100, description="Author username"),
    search: Optional[str] = Query(default=None, max_length=200),
    db: AsyncSession = Depends(get_db_session),
) -> List[SnippetResponse]:
    return await snippet_service.list_public_snippets(
        db, language=language, username=user, search=search
    )


@router.get(
    "/{snippet_id}",
    response_model=SnippetResponse,
    responses={404: {"description": "Snippet not found", "model": ErrorResponse}},
    summary="Get one snippet",
)
async def get_snippet(
    snippet_id: UUID,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    return await snippet_service.get_snippet(db, snippet_id, user)


@router.patch(
    "/{snippet_id}",
    response_model=SnippetResponse,
    responses=_OWNER_ERRORS,
    summary="Update a snippet",
)
async def update_snippet(
    snippet_id: UUID,
    body: SnippetUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    return await snippet_service.update_snippet(db, snippet_id, body, user)


@router.delete(
    "/{snippet_id}",
    response_model=MessageResponse,
    responses=_OWNER_ERRORS,
    summary="Delete a snippet",
)
async def delete_snippet(
    snippet_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await snippet_service.delete_snippet(db, snippet_id, user)
    return MessageResponse(message="Snippet deleted successfully")
