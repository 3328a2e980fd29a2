"""
ALOKA Backend — Custom Exception Hierarchy
===========================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Services raise domain errors; global handlers in main.py turn them into
       HTTP responses with the right status code. Routes never build error
       bodies themselves.
How:   Each exception class carries a message and optional context dict.
Who:   Raised by services, dependencies and middleware; caught by global handlers.

Exception Hierarchy:
    AlokaError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error

Response body (every error):
    {
        "success": false,
        "error": "validation_error",
        "message": "Missing required fields",
        "details": {"required": [...], "missing": [...]},
        "request_id": "a1b2c3d4"
    }
"""

from typing import Any, Dict, List, Optional


class AlokaError(Exception):
    """
    Base exception for all ALOKA application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional info; returned as `details` for 4xx errors,
                  logged only for 5xx errors
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AlokaError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, partial location, null for a
             non-nullable field, missing `id` query parameter.
    HTTP:    400 Bad Request

    `required` enumerates every field the operation needs, `missing` the
    subset the client did not supply. Both end up in the response details.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        required: Optional[List[str]] = None,
        missing: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        if required is not None:
            ctx["required"] = list(required)
        if missing is not None:
            ctx["missing"] = list(missing)
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(AlokaError):
    """
    Raised when a bearer credential is missing, malformed, forged or expired,
    or when login credentials do not match an account.

    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)

    The message never says which part failed. "Invalid email or password"
    is the same whether the email exists or not.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(AlokaError):
    """
    Raised when an authenticated caller's role is not allowed to perform the
    operation. Only reachable when STUDIO_WRITES_REQUIRE_AUTH is enabled.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(AlokaError):
    """
    Raised when a requested resource does not exist.

    When:    PATCH/DELETE /api/studios?id=... for an unknown, malformed or
             soft-deleted id; GET /api/auth/me for an account that is gone.
    HTTP:    404 Not Found

    SQLAlchemy returns None for missing rows; the service layer converts
    that None into this exception.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(AlokaError):
    """
    Raised when a write collides with existing data.

    When:    Signup with an email that already has an account.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(AlokaError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The client gets a generic message. The original error text is kept in
    context["original_error"], always logged, and only echoed back when
    EXPOSE_ERROR_DETAILS is on.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(AlokaError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After)
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
