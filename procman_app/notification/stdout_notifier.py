"""Standard output completion alerts."""

import json
import sys
from datetime import datetime, timezone
from typing import Any

from ..config.notification import StdoutNotifierConfig
from ..state.models import CompletionEvent
from .base import BaseNotifier, NotificationResult, NotificationStatus

BELL = "\a"


class StdoutNotifier(BaseNotifier):
    """Prints one line per completed instance, optionally ringing the terminal bell."""

    def __init__(self, name: str, config: StdoutNotifierConfig):
        super().__init__(name, config)
        self.config: StdoutNotifierConfig = config

    def notify(self, events: list[CompletionEvent]) -> list[NotificationResult]:
        """Print alerts to stdout."""
        results = []

        for event in events:
            try:
                output = self._format_event(event)
                if self.config.bell:
                    output = BELL + output
                print(output, file=sys.stdout, flush=True)

                self.logger.info(
                    "Alert printed to stdout",
                    notifier=self.name,
                    instance_id=event.instance_id
                )

                results.append(NotificationResult(
                    status=NotificationStatus.SUCCESS,
                    message="Printed to stdout"
                ))

            except Exception as e:
                self.logger.error(
                    "Failed to print alert to stdout",
                    notifier=self.name,
                    instance_id=event.instance_id,
                    error=str(e)
                )
                results.append(NotificationResult(
                    status=NotificationStatus.FAILED,
                    message=f"Stdout error: {str(e)}",
                    error=e
                ))

        return results

    def _format_event(self, event: CompletionEvent) -> str:
        if self.config.format == "pretty":
            output = f"DONE: {event.process_name} on {event.plot_name}"
            if self.config.include_timestamp:
                output = f"[{datetime.now(timezone.utc).isoformat()}] {output}"
            return output

        payload: dict[str, Any] = event.to_dict()
        if self.config.include_timestamp:
            payload["stdout_timestamp"] = datetime.now(timezone.utc).isoformat()
        return json.dumps(payload)

    def health_check(self) -> bool:
        """Check if stdout is available."""
        try:
            return sys.stdout.writable()
        except Exception:
            return False
