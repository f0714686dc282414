"""
NewsNext Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the business rules enforced by
       the service layer.
How:   Each exception carries a user-facing message, an optional context
       dict, an HTTP status code and a short machine-readable error code.
       `register_exception_handlers` (main.py) turns them into the JSON
       error envelope.

Exception Hierarchy:
    NewsNextError (base)                → 500
    ├── ValidationError                 → 400 Bad Request (business rule on input)
    ├── AuthenticationError             → 401 Unauthorized
    ├── AuthorizationError              → 403 Forbidden
    ├── NotFoundError                   → 404 Not Found
    ├── ConflictError                   → 409 Conflict (duplicates, double bookings)
    ├── ExternalServiceError            → 502 Bad Gateway
    │   └── PaymentServiceError         → 502 (Stripe)
    ├── FileStorageError                → 500
    ├── MediaProcessingError            → 500
    └── DatabaseError                   → 500

Schema validation (FastAPI's RequestValidationError) is a separate path
and answers 422.
"""

from typing import Any, Dict, Optional


class NewsNextError(Exception):
    """
    Base exception for all NewsNext application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info; returned as `details` only by the
                  4xx handlers, logged for 5xx
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NewsNextError):
    """
    Raised when input passes schema validation but breaks a business rule.

    Examples: a start date in the past, an ad shorter than the minimum
    duration, a price above the column limit.
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


class AuthenticationError(NewsNextError):
    """Missing, malformed or expired credentials."""

    status_code = 401
    error_code = "unauthenticated"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(NewsNextError):
    """
    The caller is authenticated but may not act on this resource.

    Raised for role mismatches and for advertisers touching ads they do
    not own.
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(NewsNextError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so the status code is decided in one place.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(NewsNextError):
    """Duplicate email, overlapping ad booking, or a state that blocks the action."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The request conflicts with the current state",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExternalServiceError(NewsNextError):
    """An upstream API (email, analytics) failed after retries."""

    status_code = 502
    error_code = "external_service_error"

    def __init__(
        self,
        message: str = "An external service is temporarily unavailable",
        service: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if service:
            ctx["service"] = service
        super().__init__(message=message, context=ctx)
        self.service = service


class PaymentServiceError(ExternalServiceError):
    """
    Stripe is misconfigured or rejected the request.

    Configuration problems (missing or malformed secret key) use this too:
    the client cannot fix them, and the message tells the operator what to
    set.
    """

    error_code = "payment_error"

    def __init__(
        self,
        message: str = "Payment service is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, service="stripe", context=context)


class FileStorageError(NewsNextError):
    """Could not read, write or delete a file under the uploads root."""

    error_code = "storage_error"

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MediaProcessingError(NewsNextError):
    """ffprobe/ffmpeg failed, or the media file is missing on disk."""

    error_code = "media_processing_error"

    def __init__(
        self,
        message: str = "Media processing failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(NewsNextError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the SQL error
    is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
