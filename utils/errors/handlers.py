"""Error handling utilities and decorators."""

import asyncio
from typing import Optional, Callable, Any, Dict
from functools import wraps

from .exceptions import BaseApplicationError, DomainError, InternalError
from utils.monitoring import get_logger

logger = get_logger(__name__)


def error_payload(error: BaseApplicationError) -> Dict[str, Any]:
    """
    Build the JSON body returned to API callers.

    Internal errors never carry details; everything else uses ``to_dict()``.
    """
    if isinstance(error, InternalError):
        return {
            "error": error.error_code,
            "message": "An internal error occurred",
            "status_code": error.status_code,
        }
    return error.to_dict()


def _to_internal(func_name: str, error: Exception) -> InternalError:
    logger.error(
        f"Unexpected failure in {func_name}: {type(error).__name__}",
        error=error,
        operation=func_name,
    )
    return InternalError()


def translate_errors(operation: Optional[str] = None):
    """
    Decorator for core operations.

    Domain errors (and already-translated application errors) propagate
    unchanged. Anything else is logged with its traceback and re-raised as
    ``InternalError`` chained to the original.

    Usage:
        @translate_errors("create_appointment")
        async def create_appointment(session, ...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        name = operation or func.__name__

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except BaseApplicationError:
                raise
            except Exception as e:
                raise _to_internal(name, e) from e

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except BaseApplicationError:
                raise
            except Exception as e:
                raise _to_internal(name, e) from e

        return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

    return decorator


def is_expected(error: Exception) -> bool:
    """True for user-facing failures that should not be logged as errors."""
    return isinstance(error, DomainError)


__all__ = [
    "error_payload",
    "translate_errors",
    "is_expected",
]
