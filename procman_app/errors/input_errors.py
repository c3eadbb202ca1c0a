"""
Input error classifications for catalog and instance operations.

These exceptions describe requests that are rejected without changing any
state. They are always recoverable: the caller fixes the input and retries.
"""

from typing import Any, Dict, Optional


class InputError(Exception):
    """Base class for rejected operation inputs."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class InvalidInputError(InputError):
    """A field value violates a record invariant (e.g. non-positive duration)."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class ReferenceNotFoundError(InputError):
    """A start request references a process or plot that does not exist."""

    def __init__(self, message: str, process_id: Optional[int] = None,
                 plot_id: Optional[int] = None,
                 missing: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.process_id = process_id
        self.plot_id = plot_id
        self.missing = missing or []


class NotFoundError(InputError):
    """An update or reset targets an id that is not in the collection."""

    def __init__(self, message: str, collection: Optional[str] = None,
                 record_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.collection = collection
        self.record_id = record_id
