"""
DevJournal Backend — Auth Dependencies
========================================

FastAPI dependencies that turn an `Authorization: Bearer <token>` header
into a local User:

    header → IdentityProvider.verify_token() → Principal
           → user_service.get_or_create_user() → User

get_current_user    → 401 when the header is missing or the token is rejected
get_optional_user   → None for anonymous callers (and for rejected tokens),
                      used by the visibility-gated GET endpoints

The provider and the summarizer are dependencies too so tests can override
them with fakes via app.dependency_overrides.
"""

import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from devjournal.auth.identity import IdentityProvider, identity_provider
from devjournal.database import get_db_session
from devjournal.exceptions import AuthenticationError
from devjournal.models.user import User
from devjournal.services.gemini_service import gemini_service
from devjournal.services.llm_base import Summarizer
from devjournal.services.user_service import user_service

logger = logging.getLogger(__name__)


def get_identity_provider() -> IdentityProvider:
    return identity_provider


def get_summarizer() -> Summarizer:
    return gemini_service


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Raises:
        AuthenticationError: header missing or carries no token
    """
    if not authorization:
        raise AuthenticationError("No authorization header provided")

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authorization header format")
    token = token.strip()
    if not token:
        raise AuthenticationError("No token provided")
    return token


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    provider: IdentityProvider = Depends(get_identity_provider),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = extract_bearer_token(authorization)
    principal = await provider.verify_token(token)
    return await user_service.get_or_create_user(db, principal)


async def get_optional_user(
    authorization: Optional[str] = Header(default=None),
    provider: IdentityProvider = Depends(get_identity_provider),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    if not authorization:
        return None
    try:
        token = extract_bearer_token(authorization)
        principal = await provider.verify_token(token)
    except AuthenticationError as e:
        logger.debug("Ignoring rejected token on optional-auth route: %s", e.message)
        return None
    return await user_service.get_or_create_user(db, principal)
