"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        context: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and structured context."""
        self.message = message
        self.status_code = status_code
        self.context = context or {}
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found", context: dict[str, Any] | None = None):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404, context=context)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized", context: dict[str, Any] | None = None):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401, context=context)


class ConflictException(AppException):
    """Conflict exception (slot already booked, escalation already resolved)."""

    def __init__(self, message: str = "Conflict", context: dict[str, Any] | None = None):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, context=context)


class InvalidStateException(AppException):
    """Operation not allowed for the appointment's current (terminal) status."""

    def __init__(
        self, message: str = "Invalid appointment state", context: dict[str, Any] | None = None
    ):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, context=context)


class InvalidTransitionException(AppException):
    """Illegal appointment status transition."""

    def __init__(
        self, message: str = "Invalid status transition", context: dict[str, Any] | None = None
    ):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, context=context)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error", context: dict[str, Any] | None = None):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422, context=context)


class CancellationWindowException(ValidationException):
    """Cancellation attempted inside the minimum notice window."""


class ConfigurationException(AppException):
    """Required external configuration is missing. Fatal at startup."""

    def __init__(
        self, message: str = "Invalid configuration", context: dict[str, Any] | None = None
    ):
        """Initialize with 500 status code."""
        super().__init__(message, status_code=500, context=context)


class MessageChannelException(AppException):
    """Outbound message could not be delivered. Safe to retry."""

    def __init__(
        self, message: str = "Message delivery failed", context: dict[str, Any] | None = None
    ):
        """Initialize with 502 status code."""
        super().__init__(message, status_code=502, context=context)
