"""
DevJournal Backend — Shared Schemas
=====================================

What:  Building blocks reused by every resource schema:
       - ApiModel:      camelCase on the wire, snake_case in Python
       - Page[T]:       the list envelope {data, total, page, limit, totalPages}
       - ErrorResponse, MessageResponse, HealthResponse
"""

import math
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """
    Base for request and response bodies.

    Responses are serialized with camelCase aliases (isPublic, createdAt,
    totalPages); requests accept either spelling.
    """

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# ══════════════════════════════════════════════════════════════════════════
# Pagination
# ══════════════════════════════════════════════════════════════════════════

def total_pages(total: int, limit: int) -> int:
    """ceil(total / limit); zero when there is nothing to page through."""
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


class Page(ApiModel, Generic[T]):
    """
    Envelope returned by every paginated list endpoint.

    Example:
        {"data": [...], "total": 5, "page": 1, "limit": 2, "totalPages": 3}
    """

    data: List[T] = Field(description="Items on this page, newest first")
    total: int = Field(ge=0, description="Total number of matching items")
    page: int = Field(ge=1, description="1-based page number")
    limit: int = Field(ge=1, description="Page size")
    total_pages: int = Field(ge=0, description="ceil(total / limit)")

    @classmethod
    def build(cls, items: List[T], total: int, page: int, limit: int) -> "Page[T]":
        return cls(
            data=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages(total, limit),
        )


# ══════════════════════════════════════════════════════════════════════════
# Misc responses
# ══════════════════════════════════════════════════════════════════════════

class MessageResponse(BaseModel):
    """Returned by delete endpoints."""
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "not_found",
            "message": "entry with ID '…' was not found",
            "details": {"resource": "entry"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    ai: str = Field(description="Summarizer status: available, unconfigured, unavailable, circuit_open")
    uptime_seconds: float = Field(description="Seconds since service started")
