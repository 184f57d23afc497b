"""
Plateful Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses.
Who:   Raised by services, routes and middleware; caught by global handlers.

Exception Hierarchy:
    PlatefulError (base)
    ├── ValidationError          → 400 Bad Request
    ├── UnauthenticatedError     → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── TransientConflictError   → 409 Conflict (safe to retry)
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error

Malformed opening hours are deliberately absent from this list: a restaurant
with unreadable hours is simply treated as closed.
"""

from typing import Any, Dict, Optional


class PlatefulError(Exception):
    """
    Base exception for all Plateful application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PlatefulError):
    """
    Raised when client input fails a business rule.

    When:    Blank userId, inverted price bounds.
    HTTP:    400 Bad Request

    Schema-level problems (wrong types in query params) stay with FastAPI's
    own 422 handling; this class covers the rules the services enforce.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthenticatedError(PlatefulError):
    """Raised when an endpoint needs a logged-in user and the session has none."""

    def __init__(
        self,
        message: str = "Authentication is required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PlatefulError):
    """
    Raised when a requested resource does not exist.

    When:    GET /api/restaurants/{id} or a vote on an unknown restaurant id.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class TransientConflictError(PlatefulError):
    """
    Raised when a vote update keeps losing the race for the restaurant row.

    When:    Every bounded retry hit a concurrent writer (version mismatch or
             duplicate vote row).
    HTTP:    409 Conflict, with Retry-After so clients know a retry is safe.
    """

    def __init__(
        self,
        message: str = "The restaurant was updated concurrently. Please retry.",
        retry_after: int = 1,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(PlatefulError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; details are
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(PlatefulError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

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
