"""
RecipeShelf Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by services, dependencies and middleware; caught by global handlers.

Exception Hierarchy:
    RecipeShelfError (base)
    ├── ValidationError          → 400 Bad Request (per-field errors)
    ├── UnauthorizedError        → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (concurrent update lost)
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── PersistenceError         → 500 Internal Server Error
"""

from typing import Any, Dict, Mapping, Optional


class RecipeShelfError(Exception):
    """
    Base exception for all RecipeShelf application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where a handler says so)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(RecipeShelfError):
    """
    Raised when client input fails validation.

    Carries one message per offending field in `errors`, so a client can
    highlight every bad field at once instead of fixing them one by one.

    Example response:
        {
            "error": "validation_error",
            "message": "Recipe validation failed: banners, servings",
            "details": {"errors": {"banners": "Image not exists",
                                   "servings": "Input should be less than or equal to 16"}}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[Mapping[str, str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        collected: Dict[str, str] = dict(errors or {})
        if field and field not in collected:
            collected[field] = message
        if field:
            ctx["field"] = field
        if collected:
            ctx["errors"] = collected
        super().__init__(message=message, context=ctx)
        self.field = field
        self.errors = collected


class UnauthorizedError(RecipeShelfError):
    """Raised when a route needs a user and the request carries none (or an unknown one)."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(RecipeShelfError):
    """
    Raised when the current user may not act on a resource.

    When:    Editing someone else's recipe or collection, reading a private recipe.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(RecipeShelfError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that
    None into this exception.
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


class ConflictError(RecipeShelfError):
    """
    Raised when an optimistic-lock check fails on flush.

    Two writers loaded the same row and the other one saved first. The
    losing request is rejected instead of silently overwriting; retrying is
    safe because membership and rating mutations are idempotent.
    """

    def __init__(
        self,
        resource: str = "resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"The {resource} was modified by another request. "
            "Reload it and try again."
        )
        ctx = context or {}
        ctx["resource"] = resource
        super().__init__(message=message, context=ctx)


class PersistenceError(RecipeShelfError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the original
    error type is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(RecipeShelfError):
    """Raised when a client exceeds the write-request rate limit."""

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
