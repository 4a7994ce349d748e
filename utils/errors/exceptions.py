"""Custom exception classes with detailed error information."""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class BaseApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize base error.

        Args:
            message: Error message
            error_code: Machine-readable error code
            status_code: HTTP status code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class RateLimitError(BaseApplicationError):
    """Rate limit exceeded error."""

    def __init__(
        self,
        message: str = "Too many requests, try later",
        retry_after: Optional[int] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            **kwargs
        )
        self.details["retry_after"] = retry_after


class InternalError(BaseApplicationError):
    """
    Infrastructure fault below the booking core.

    The original exception is logged where it is caught; only a generic
    message ever leaves the process.
    """

    def __init__(self, message: str = "An internal error occurred", **kwargs):
        super().__init__(message, error_code="INTERNAL_ERROR", status_code=500, **kwargs)


# ============================================================================
# Domain errors: expected, recoverable, user-facing
# ============================================================================

class DomainError(BaseApplicationError):
    """Base class for expected booking/credential failures."""

    error_code = "DOMAIN_ERROR"
    status_code = 400
    default_message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None, **kwargs):
        super().__init__(
            message or self.default_message,
            error_code=type(self).error_code,
            status_code=type(self).status_code,
            **kwargs
        )


class DuplicateEmailError(DomainError):
    error_code = "DUPLICATE_EMAIL"
    status_code = 409
    default_message = "Email already in use"


class InvalidCredentialsError(DomainError):
    error_code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Invalid credentials"


class PasswordMismatchError(DomainError):
    error_code = "PASSWORD_MISMATCH"
    status_code = 400
    default_message = "New passwords do not match"


class InvalidOrExpiredTokenError(DomainError):
    error_code = "INVALID_OR_EXPIRED_TOKEN"
    status_code = 400
    default_message = "Invalid or expired token"


class InvalidTimeFormatError(DomainError):
    error_code = "INVALID_TIME_FORMAT"
    status_code = 422
    default_message = "Times must be HH:MM (24-hour) and start must be before end"


class OverlapConflictError(DomainError):
    error_code = "OVERLAP_CONFLICT"
    status_code = 409
    default_message = "The requested time overlaps an existing booking"


class SlotUnavailableError(DomainError):
    error_code = "SLOT_UNAVAILABLE"
    status_code = 409
    default_message = "The mentor is not available at the requested time"


class NotFoundError(DomainError):
    error_code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class ForbiddenError(DomainError):
    error_code = "FORBIDDEN"
    status_code = 403
    default_message = "Not authorized"


class InvalidTransitionError(DomainError):
    error_code = "INVALID_TRANSITION"
    status_code = 409
    default_message = "Status change not allowed"


class InvalidParticipantsError(DomainError):
    error_code = "INVALID_PARTICIPANTS"
    status_code = 400
    default_message = "Client and mentor are both required"


class EmptyMessageError(DomainError):
    error_code = "EMPTY_MESSAGE"
    status_code = 422
    default_message = "Message cannot be empty"


class PasswordTooLongError(DomainError):
    error_code = "PASSWORD_TOO_LONG"
    status_code = 422
    default_message = "Password must be at most 72 bytes"
