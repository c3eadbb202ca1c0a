"""
Error classification system for the process tracker.

This module provides the exception hierarchy raised by the stores and the
persistence gateway. The tracker boundary converts every one of them into
an operation result, so none of them escape to the presentation layer.
"""

from .input_errors import (
    InputError,
    InvalidInputError,
    ReferenceNotFoundError,
    NotFoundError,
)
from .system_failures import (
    SystemFailureError,
    PersistenceError,
    PersistenceCorruptError,
    NotificationError,
)

__all__ = [
    # Input Errors
    "InputError",
    "InvalidInputError",
    "ReferenceNotFoundError",
    "NotFoundError",
    # System Failures
    "SystemFailureError",
    "PersistenceError",
    "PersistenceCorruptError",
    "NotificationError",
]
