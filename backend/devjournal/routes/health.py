"""
DevJournal Backend — Health Check Route
=========================================

Status levels:
    healthy    database reachable and summarizer available
    degraded   database reachable but the summarizer is not usable
               (unconfigured, circuit_open or unavailable)
    unhealthy  database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from devjournal import __version__
from devjournal.auth.dependencies import get_summarizer
from devjournal.database import engine
from devjournal.schemas.common import HealthResponse
from devjournal.services.llm_base import Summarizer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


def summarizer_status(summarizer: Summarizer) -> str:
    status = getattr(summarizer, "status", None)
    if callable(status):
        return status()
    return "available" if summarizer.is_available else "unconfigured"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(summarizer: Summarizer = Depends(get_summarizer)) -> HealthResponse:
    """Checks the database with SELECT 1 and reports the summarizer state."""
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    ai_status = summarizer_status(summarizer)
    if ai_status == "available" and not await summarizer.health_check():
        ai_status = "unavailable"
    if ai_status != "available" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        ai=ai_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
