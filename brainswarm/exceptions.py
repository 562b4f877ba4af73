"""
Brainswarm Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, the priority engine and auth dependencies.

Exception Hierarchy:
    BrainswarmError (base)          → 500
    ├── ValidationError             → 400 Bad Request
    │   └── InvalidEffortError      → 400 (effort outside low|medium|high)
    ├── AuthenticationError         → 401 Unauthorized
    ├── PermissionDeniedError       → 403 Forbidden
    ├── NotFoundError               → 404 Not Found
    ├── ConflictError               → 409 Conflict
    ├── RateLimitExceededError      → 429 Too Many Requests
    └── DatabaseError               → 500 Internal Server Error

Schema-level request validation stays with FastAPI/Pydantic (422).
"""

from typing import Any, Dict, Optional


class BrainswarmError(Exception):
    """
    Base exception for all Brainswarm application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
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


class ValidationError(BrainswarmError):
    """
    Raised when input passes schema validation but breaks a business rule.

    Example response:
        {
            "error": "validation_error",
            "message": "User is not a member of this team",
            "details": {"field": "user_id"}
        }
    """

    status_code = 400
    error_code = "validation_error"

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


class InvalidEffortError(ValidationError):
    """Raised by the priority engine for an effort outside low|medium|high."""

    def __init__(self, effort: Any):
        super().__init__(
            message=f"Invalid effort '{effort}'. Must be one of: low, medium, high",
            field="effort",
            context={"effort": str(effort)},
        )
        self.effort = effort


class AuthenticationError(BrainswarmError):
    """Missing, malformed, revoked or unknown credentials."""

    status_code = 401
    error_code = "unauthenticated"

    def __init__(
        self,
        message: str = "Unauthenticated.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(BrainswarmError):
    """
    Raised when an access-control predicate denies an operation.

    The operation name travels in the context for server-side logs.
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "This action is unauthorized.",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class NotFoundError(BrainswarmError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; services convert that
    into this exception so routes never deal with None checks.
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


class ConflictError(BrainswarmError):
    """A uniqueness rule was violated (duplicate email, duplicate team code)."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)


class DatabaseError(BrainswarmError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the detailed
    cause is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(BrainswarmError):
    """Client exceeded the per-IP request rate limit."""

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
