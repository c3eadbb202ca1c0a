"""
System failure error classifications.

These exceptions represent failures of the storage or alerting machinery
rather than of the caller's input.
"""

from typing import Any, Dict, Optional


class SystemFailureError(Exception):
    """Base class for storage and notification failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class PersistenceError(SystemFailureError):
    """Serialization or key-value store write failure."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class PersistenceCorruptError(PersistenceError):
    """A stored collection could not be decoded.

    The gateway recovers from this locally by re-seeding the key.
    """

    def __init__(self, message: str, key: Optional[str] = None,
                 raw_value: Optional[str] = None, **kwargs):
        super().__init__(message, operation="load", target=key, **kwargs)
        self.key = key
        self.raw_value = raw_value
        self.recoverable = True


class NotificationError(SystemFailureError):
    """A notifier failed to deliver a completion alert."""

    def __init__(self, message: str, notifier: Optional[str] = None,
                 instance_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.notifier = notifier
        self.instance_id = instance_id
