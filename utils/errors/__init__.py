"""Error taxonomy and handling helpers."""

from .exceptions import (
    BaseApplicationError,
    RateLimitError,
    InternalError,
    DomainError,
    DuplicateEmailError,
    InvalidCredentialsError,
    PasswordMismatchError,
    InvalidOrExpiredTokenError,
    InvalidTimeFormatError,
    OverlapConflictError,
    SlotUnavailableError,
    NotFoundError,
    ForbiddenError,
    InvalidTransitionError,
    InvalidParticipantsError,
    EmptyMessageError,
    PasswordTooLongError,
)
from .handlers import (
    error_payload,
    translate_errors,
    is_expected,
)

__all__ = [
    # Exceptions
    "BaseApplicationError",
    "RateLimitError",
    "InternalError",
    "DomainError",
    "DuplicateEmailError",
    "InvalidCredentialsError",
    "PasswordMismatchError",
    "InvalidOrExpiredTokenError",
    "InvalidTimeFormatError",
    "OverlapConflictError",
    "SlotUnavailableError",
    "NotFoundError",
    "ForbiddenError",
    "InvalidTransitionError",
    "InvalidParticipantsError",
    "EmptyMessageError",
    "PasswordTooLongError",
    # Handlers
    "error_payload",
    "translate_errors",
    "is_expected",
]
