"""
Completion notification dispatch.

Each active instance runs a two-state machine: PENDING while
``notified`` is False, NOTIFIED once the completion alert has fired.
The dispatcher walks the evaluated view of a tick, flips every complete
PENDING instance to NOTIFIED through the tracker, and hands the
resulting events to the configured notifiers. An instance that is
already NOTIFIED is never alerted again until it is reset.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional

import structlog

from ..config.notification import (
    NotificationConfig,
    NotificationMethod,
    get_default_notification_config,
)
from ..logging.config import get_state_logger, log_state_transition
from ..notification import (
    AlertCallback,
    BaseNotifier,
    CallbackNotifier,
    FileNotifier,
    NotificationStatus,
    StdoutNotifier,
)
from ..store.active import ActiveInstanceTracker
from .models import CompletionEvent, EvaluatedInstance, InstanceState

logger = structlog.get_logger(__name__)
state_logger = get_state_logger(__name__)


@dataclass
class DispatchResult:
    """Outcome of one dispatch pass."""
    instances: list[EvaluatedInstance] = field(default_factory=list)
    events: list[CompletionEvent] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)


class NotificationDispatcher:
    """Fires the completion alert exactly once per PENDING → NOTIFIED transition."""

    def __init__(
        self,
        notification_config: Optional[NotificationConfig] = None,
        callback: Optional[AlertCallback] = None,
        notifiers: Optional[dict[str, BaseNotifier]] = None
    ):
        self.logger = logger
        self.notification_config = notification_config or get_default_notification_config()
        self.notifiers: dict[str, BaseNotifier] = {}

        if notifiers is not None:
            self.notifiers = dict(notifiers)
        else:
            self._init_notifiers(callback)

    def _init_notifiers(self, callback: Optional[AlertCallback]) -> None:
        """Initialize notifiers based on configuration."""
        if not self.notification_config.enabled:
            return

        for destination in self.notification_config.destinations:
            if not destination.enabled:
                continue

            try:
                handler: BaseNotifier
                if destination.method == NotificationMethod.STDOUT:
                    handler = StdoutNotifier(destination.name, destination.config)
                elif destination.method == NotificationMethod.FILE_OUTPUT:
                    handler = FileNotifier(destination.name, destination.config)
                elif destination.method == NotificationMethod.CALLBACK:
                    if callback is None:
                        self.logger.warning(
                            "Callback destination configured without a callback",
                            destination=destination.name
                        )
                        continue
                    handler = CallbackNotifier(destination.name, destination.config, callback)
                else:
                    self.logger.warning("Unsupported notification method", method=str(destination.method))
                    continue

                self.notifiers[destination.name] = handler
                self.logger.info("Initialized notifier", destination=destination.name)

            except Exception as e:
                self.logger.error(
                    "Failed to initialize notifier",
                    destination=destination.name,
                    error=str(e)
                )

    def dispatch(
        self,
        evaluated: list[EvaluatedInstance],
        tracker: ActiveInstanceTracker,
        now: int,
        deliver: bool = True
    ) -> DispatchResult:
        """
        Transition complete PENDING instances to NOTIFIED and alert once each.

        Args:
            evaluated: Evaluated view of the current tick
            tracker: Owner of the instances; receives the notified flag
            now: Tick time in epoch milliseconds
            deliver: Hand the events to the notifiers now; pass False to
                call ``deliver`` later, outside the caller's lock

        Returns:
            DispatchResult with the refreshed view, the fired events and
            any notifier failure messages
        """
        result = DispatchResult()

        for item in evaluated:
            if not item.needs_notification:
                result.instances.append(item)
                continue

            updated = tracker.mark_notified(item.instance.id)
            if updated is None:
                # Deleted or already flipped since evaluation
                result.instances.append(item)
                continue

            log_state_transition(
                state_logger,
                instance_id=item.instance.id,
                from_state=InstanceState.PENDING.value,
                to_state=InstanceState.NOTIFIED.value,
                trigger="completed",
                context={
                    "process_id": item.process.id,
                    "plot_id": item.plot.id,
                    "remaining_millis": item.remaining_millis,
                    "end_time_millis": item.end_time_millis,
                }
            )

            result.instances.append(replace(item, instance=updated))
            result.events.append(CompletionEvent(
                instance_id=updated.id,
                process_id=item.process.id,
                plot_id=item.plot.id,
                process_name=item.process.name,
                plot_name=item.plot.name,
                start_time_millis=updated.start_time_millis,
                end_time_millis=item.end_time_millis,
                notified_at=now,
            ))

        if deliver and result.events:
            result.failures = self.deliver(result.events)

        return result

    def deliver(self, events: list[CompletionEvent]) -> list[str]:
        """Hand events to every matching notifier; return failure messages."""
        failures: list[str] = []

        if not self.notification_config.enabled or not self.notifiers:
            return failures

        destinations = {d.name: d for d in self.notification_config.destinations}

        for name, handler in self.notifiers.items():
            destination = destinations.get(name)
            selected = [
                event for event in events
                if destination is None or self._matches(destination, event)
            ]
            if not selected:
                continue

            try:
                results = handler.notify_with_retry(
                    selected,
                    max_retries=self.notification_config.failure_retry_attempts,
                    retry_delay=self.notification_config.failure_retry_delay_seconds
                )
            except Exception as e:
                self.logger.error(
                    "Unexpected error during alert delivery",
                    destination=name,
                    error=str(e)
                )
                failures.append(f"{name}: {e}")
                continue

            for event, outcome in zip(selected, results):
                if outcome.status == NotificationStatus.SUCCESS:
                    self.logger.info(
                        "Alert delivered",
                        destination=name,
                        instance_id=event.instance_id,
                        attempts=outcome.attempt_count
                    )
                else:
                    self.logger.error(
                        "Alert delivery failed",
                        destination=name,
                        instance_id=event.instance_id,
                        status=outcome.status.value,
                        message=outcome.message,
                        attempts=outcome.attempt_count
                    )
                    failures.append(f"{name}: {outcome.message}")

        return failures

    @staticmethod
    def _matches(destination: Any, event: CompletionEvent) -> bool:
        if destination.processes_filter and event.process_id not in destination.processes_filter:
            return False
        if destination.plots_filter and event.plot_id not in destination.plots_filter:
            return False
        return True

    def get_stats(self) -> dict[str, Any]:
        """Delivery statistics per notifier."""
        return {name: handler.get_stats() for name, handler in self.notifiers.items()}
