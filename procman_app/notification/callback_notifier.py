"""Completion alerts routed to a caller-supplied hook."""

from typing import Callable

from ..config.notification import CallbackNotifierConfig
from ..state.models import CompletionEvent
from .base import BaseNotifier, NotificationResult, NotificationStatus

AlertCallback = Callable[[CompletionEvent], None]


class CallbackNotifier(BaseNotifier):
    """Invokes the presentation layer's "play alert" hook once per event."""

    # The hook may have played the alert before raising
    retryable = False

    def __init__(self, name: str, config: CallbackNotifierConfig, callback: AlertCallback):
        super().__init__(name, config)
        self.config: CallbackNotifierConfig = config
        self.callback = callback

    def notify(self, events: list[CompletionEvent]) -> list[NotificationResult]:
        results = []

        for event in events:
            try:
                self.callback(event)
                results.append(NotificationResult(status=NotificationStatus.SUCCESS))

            except Exception as e:
                if not self.config.swallow_errors:
                    raise
                self.logger.error(
                    "Alert callback raised",
                    notifier=self.name,
                    instance_id=event.instance_id,
                    error=str(e)
                )
                results.append(NotificationResult(
                    status=NotificationStatus.FAILED,
                    message=f"Callback error: {str(e)}",
                    error=e
                ))

        return results

    def health_check(self) -> bool:
        return callable(self.callback)
