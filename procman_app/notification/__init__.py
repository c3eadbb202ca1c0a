"""
Completion alert notifiers.
"""
from .base import BaseNotifier, NotificationResult, NotificationStatus
from .callback_notifier import AlertCallback, CallbackNotifier
from .file_notifier import FileNotifier
from .stdout_notifier import StdoutNotifier

__all__ = [
    "AlertCallback",
    "BaseNotifier",
    "NotificationResult",
    "NotificationStatus",
    "CallbackNotifier",
    "FileNotifier",
    "StdoutNotifier",
]
