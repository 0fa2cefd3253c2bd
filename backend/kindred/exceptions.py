"""
Kindred Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the error scenarios of the API.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages, without leaking internals.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) turn them into
       structured JSON error responses.
Who:   Raised by services, dependencies and middleware; caught by global handlers.

Exception Hierarchy:
    KindredError (base)
    ├── ValidationError              → 400 Bad Request
    │   └── InsufficientCreditsError → 400 Bad Request
    ├── AuthenticationError          → 401 Unauthorized
    ├── PermissionDeniedError        → 403 Forbidden
    ├── NotFoundError                → 404 Not Found
    ├── ConflictError                → 409 Conflict
    │   ├── DuplicateSwipeError      → 409 Conflict
    │   └── ConcurrencyError         → 409 Conflict
    ├── DatabaseError                → 500 Internal Server Error
    └── RateLimitExceededError       → 429 Too Many Requests

Note:
    The scoring policy itself raises nothing at runtime. Everything here is
    about the request plumbing around it.
"""

from typing import Any, Dict, Optional


class KindredError(Exception):
    """
    Base exception for all Kindred application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned where a handler opts in)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(KindredError):
    """
    Raised when client input breaks a business rule.

    HTTP: 400 Bad Request. Schema-level problems (wrong types, missing fields)
    are caught earlier by FastAPI and answered with 422.
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


class InsufficientCreditsError(ValidationError):
    """Raised when a like is attempted with an empty daily credit balance."""

    def __init__(
        self,
        profile_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if profile_id is not None:
            ctx["profile_id"] = profile_id
        super().__init__(
            message="Not enough credits. Your likes refresh tomorrow.",
            field="credits",
            context=ctx,
        )


class AuthenticationError(KindredError):
    """
    Raised when the caller's identity is missing or unreadable.

    HTTP: 401 Unauthorized. Identity comes from the upstream session layer
    as the X-User-ID header; this backend does not log users in itself.
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(KindredError):
    """
    Raised when an authenticated caller touches something that isn't theirs.

    HTTP: 403 Forbidden. Examples: editing another user's profile, reading a
    match the caller is not part of, opening admin analytics.
    """

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(KindredError):
    """
    Raised when a requested resource does not exist.

    HTTP: 404 Not Found. SQLAlchemy returns None for missing rows; services
    convert that None into this exception.
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


class ConflictError(KindredError):
    """
    Raised when the request conflicts with the current state of a resource.

    HTTP: 409 Conflict. Example: creating a second profile for the same user.
    """

    def __init__(
        self,
        message: str = "The request conflicts with the current state",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicateSwipeError(ConflictError):
    """Raised when a profile swipes on the same target a second time."""

    def __init__(
        self,
        swiper_id: int,
        target_id: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update(swiper_id=swiper_id, target_id=target_id)
        super().__init__(
            message="You have already swiped on this profile",
            context=ctx,
        )


class ConcurrencyError(ConflictError):
    """
    Raised when a conditional score update keeps losing to concurrent writers.

    What:    Every retry of the compare-and-set UPDATE found the stored score
             changed underneath it.
    HTTP:    409 Conflict. The client can simply retry the swipe.
    """

    def __init__(
        self,
        profile_id: int,
        attempts: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update(profile_id=profile_id, attempts=attempts)
        super().__init__(
            message="The profile was updated by another request. Please try again.",
            context=ctx,
        )
        self.profile_id = profile_id
        self.attempts = attempts


class DatabaseError(KindredError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error. The response message is always generic;
    the context is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(KindredError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP: 429 Too Many Requests, with a Retry-After header.
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
