"""Base classes for completion alert notifiers."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog

from ..errors import NotificationError
from ..state.models import CompletionEvent


class NotificationStatus(Enum):
    """Alert delivery status."""
    SUCCESS = "success"
    FAILED = "failed"
    GAVE_UP = "gave_up"


@dataclass
class NotificationResult:
    """Result of an alert delivery attempt."""
    status: NotificationStatus
    message: Optional[str] = None
    attempt_count: int = 1
    delivery_time_ms: Optional[int] = None
    error: Optional[Exception] = None


class NotifierRetryableError(NotificationError):
    """Alert failure worth another attempt."""


class NotifierPermanentError(NotificationError):
    """Alert failure that should not be retried."""


class BaseNotifier(ABC):
    """
    Base class for completion alert notifiers.

    Subclasses implement ``notify`` for a batch of events; the retry
    wrapper calls it one event at a time so a failing alert never holds
    back the others from the same tick.
    """

    # False for notifiers whose side effect may already have happened when they fail
    retryable = True

    def __init__(self, name: str, config: Any):
        self.name = name
        self.config = config
        self.logger = structlog.get_logger(f"procman_app.notification.{name}")
        self._delivery_count = 0
        self._error_count = 0

    @abstractmethod
    def notify(self, events: list[CompletionEvent]) -> list[NotificationResult]:
        """Fire the completion alert for each event; one result per event."""

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the notifier can currently deliver."""

    def notify_with_retry(
        self,
        events: list[CompletionEvent],
        max_retries: int = 0,
        retry_delay: float = 0.0
    ) -> list[NotificationResult]:
        """
        Fire alerts, retrying each failed event up to ``max_retries`` times.

        Args:
            events: Completion events from one tick
            max_retries: Extra attempts after the first failure, ignored when
                the notifier is not ``retryable``
            retry_delay: Seconds to sleep between attempts

        Returns:
            List of results, one per event
        """
        return [self._notify_one(event, max_retries, retry_delay) for event in events]

    def _notify_one(
        self,
        event: CompletionEvent,
        max_retries: int,
        retry_delay: float
    ) -> NotificationResult:
        attempts = max_retries + 1 if self.retryable else 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            started = time.monotonic()
            try:
                outcome = self._single(event)
            except NotifierPermanentError as e:
                self._error_count += 1
                return NotificationResult(
                    status=NotificationStatus.FAILED,
                    message=f"Permanent error: {e}",
                    attempt_count=attempt,
                    error=e
                )
            except Exception as e:
                # Anything other than a permanent error is worth retrying
                last_error = e
            else:
                outcome.attempt_count = attempt
                outcome.delivery_time_ms = int((time.monotonic() - started) * 1000)
                self._delivery_count += 1
                return outcome

            if attempt < attempts:
                self.logger.warning(
                    "Alert attempt failed, retrying",
                    notifier=self.name,
                    instance_id=event.instance_id,
                    attempt=attempt,
                    retry_delay=retry_delay,
                    error=str(last_error)
                )
                if retry_delay > 0:
                    time.sleep(retry_delay)

        self._error_count += 1
        return NotificationResult(
            status=NotificationStatus.GAVE_UP,
            message=f"Max retries exceeded: {last_error}",
            attempt_count=attempts,
            error=last_error
        )

    def _single(self, event: CompletionEvent) -> NotificationResult:
        """Notify one event, raising NotifierRetryableError on a reported failure."""
        results = self.notify([event])
        if not results:
            raise NotifierRetryableError("Notifier returned no result", notifier=self.name,
                                         instance_id=event.instance_id)

        result = results[0]
        if result.status != NotificationStatus.SUCCESS:
            raise NotifierRetryableError(
                result.message or str(result.error),
                notifier=self.name,
                instance_id=event.instance_id
            ) from result.error
        return result

    def get_stats(self) -> dict[str, Any]:
        """Get delivery statistics."""
        total = self._delivery_count + self._error_count
        return {
            "name": self.name,
            "delivery_count": self._delivery_count,
            "error_count": self._error_count,
            "success_rate": self._delivery_count / total if total else 0.0,
        }

    def reset_stats(self) -> None:
        """Reset delivery statistics."""
        self._delivery_count = 0
        self._error_count = 0
