"""
Tattooed World Backend — Custom Exception Hierarchy
=====================================================

What:  Application-specific exceptions for every error scenario the API reports.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, dependencies and middleware; caught by global handlers.

Exception Hierarchy:
    TattooedWorldError (base)
    ├── ValidationError            → 400 Bad Request (details array)
    ├── AuthenticationError        → 401 Unauthorized
    ├── PermissionDeniedError      → 403 Forbidden
    ├── NotFoundError              → 404 Not Found
    ├── ConflictError              → 409 Conflict
    ├── RateLimitExceededError     → 429 Too Many Requests
    ├── GeocodingError             → 502 Bad Gateway
    │   ├── GeocodeRateLimitError  → 429 upstream (retried by the batch)
    │   └── GeocodingUnavailableError → 503 Service Unavailable
    ├── CircuitBreakerOpenError    → 503 Service Unavailable
    └── DatabaseError              → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional


class TattooedWorldError(Exception):
    """
    Base exception for all application errors.

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


class ValidationError(TattooedWorldError):
    """
    Raised when client input fails a business rule.

    HTTP: 400. The response carries ``details``: a list of
    ``{"field": ..., "message": ...}`` entries, the same shape produced for
    request-schema failures.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        details: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.field = field
        if details is None:
            details = [{"field": field, "message": message}] if field else []
        self.details = details


class AuthenticationError(TattooedWorldError):
    """Missing, malformed or expired credentials. HTTP 401."""

    def __init__(
        self,
        message: str = "Not authorized to access this route",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(TattooedWorldError):
    """Authenticated, but the role or ownership check failed. HTTP 403."""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TattooedWorldError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; services convert that
    into NotFoundError. HTTP 404.
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
        self.resource = resource


class ConflictError(TattooedWorldError):
    """Uniqueness rule or state precondition violated. HTTP 409."""

    def __init__(
        self,
        message: str = "The request conflicts with the current state of the resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GeocodingError(TattooedWorldError):
    """
    The external geocoding API could not resolve an address.

    ``status`` carries the provider status string (ZERO_RESULTS,
    REQUEST_DENIED, HTTP_500 ...). HTTP 502 when surfaced to a client.
    """

    def __init__(
        self,
        message: str = "Geocoding failed",
        status: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status:
            ctx["status"] = status
        super().__init__(message=message, context=ctx)
        self.status = status


class GeocodeRateLimitError(GeocodingError):
    """Provider answered HTTP 429 or OVER_QUERY_LIMIT."""

    def __init__(
        self,
        message: str = "Geocoding provider rate limit reached",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, status="OVER_QUERY_LIMIT", context=context)


class GeocodingUnavailableError(GeocodingError):
    """No API key configured; geocoding cannot run. HTTP 503."""

    def __init__(
        self,
        message: str = "Geocoding is not configured on this server",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, status="NOT_CONFIGURED", context=context)


class CircuitBreakerOpenError(TattooedWorldError):
    """
    Raised when the geocoding circuit breaker is in OPEN state.

    CLOSED → (N consecutive failures) → OPEN → (recovery timeout)
    → HALF_OPEN → success closes / failure re-opens. HTTP 503.
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Geocoding service is temporarily unavailable due to repeated failures. "
            f"It will be retried in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(TattooedWorldError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; details are
    logged server-side only. HTTP 500.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(TattooedWorldError):
    """Per-IP request rate exceeded. HTTP 429 with Retry-After."""

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
