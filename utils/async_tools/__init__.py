"""Async coordination utilities."""

from .keyed_locks import KeyedLockManager, get_booking_locks

__all__ = [
    "KeyedLockManager",
    "get_booking_locks",
]
