"""
DevJournal Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions, one per failure class the API exposes.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) turn them into JSON
       error responses with the matching HTTP status code.
Who:   Raised by services, auth dependencies and middleware.

Exception Hierarchy:
    DevJournalError (base)
    ├── AuthenticationError      → 401 Unauthorized
    ├── AuthorizationError       → 403 Forbidden
    ├── NotFoundError            → 404 Not Found (also hides private resources)
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    └── ExternalServiceError     → 500 Internal Server Error
        ├── IdentityProviderError
        └── LLMServiceError
            └── CircuitBreakerOpenError

Only two failures are ever recovered from inside the services: a duplicate
user insert and a duplicate tag insert. Both are turned into a re-fetch.
Everything else propagates to the caller.
"""

from typing import Any, Dict, Optional


class DevJournalError(Exception):
    """
    Base exception for all DevJournal application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only where harmless)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class AuthenticationError(DevJournalError):
    """
    Raised when a bearer credential is missing, malformed or rejected by
    the identity provider.

    HTTP: 401 Unauthorized, with `WWW-Authenticate: Bearer`.
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Invalid or expired token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(DevJournalError):
    """
    Raised when an authenticated caller tries to modify a resource they do
    not own.

    HTTP: 403 Forbidden. Only raised after the resource is known to exist.
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to access this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(DevJournalError):
    """
    Raised when a requested resource does not exist, or exists but is private
    and the caller is not its owner.

    HTTP: 404 Not Found. The two cases produce byte-identical responses.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(DevJournalError):
    """
    Raised on a uniqueness violation the caller can fix (taken username,
    email already linked to another account).

    HTTP: 409 Conflict
    """

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DatabaseError(DevJournalError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500. The response message is always generic; the context is only logged.
    """

    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExternalServiceError(DevJournalError):
    """
    Raised when an external collaborator (identity provider, LLM) fails.

    HTTP: 500. No automatic retry is attempted.
    """

    error_code = "external_service_error"

    def __init__(
        self,
        message: str = "An external service failed. Please try again later.",
        service: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if service:
            ctx["service"] = service
        super().__init__(message=message, context=ctx)
        self.service = service


class IdentityProviderError(ExternalServiceError):
    """The identity provider could not be reached or answered with a server error."""

    def __init__(
        self,
        message: str = "Authentication service is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, service="identity_provider", context=context)


class LLMServiceError(ExternalServiceError):
    """
    Raised when the summarization model fails or is not configured.

    Attributes:
        retry_after: Suggested seconds before retrying (set by the circuit breaker)
    """

    error_code = "llm_service_error"

    def __init__(
        self,
        message: str = "Failed to generate summary",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, service="llm", context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(LLMServiceError):
    """
    Raised when the Gemini circuit breaker is OPEN.

    CLOSED → N consecutive failures → OPEN (reject for recovery_time seconds)
    → HALF_OPEN (one trial call) → CLOSED on success, OPEN on failure
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"AI service is temporarily unavailable due to repeated failures. "
            f"Try again in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, retry_after=recovery_time, context=ctx)
        self.recovery_time = recovery_time


class RateLimitExceededError(DevJournalError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP: 429 Too Many Requests, with a Retry-After header.
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


