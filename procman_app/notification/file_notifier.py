"""File-based completion alerts."""

import fcntl
import json
from pathlib import Path
from typing import Any

from ..config.notification import FileNotifierConfig
from ..state.models import CompletionEvent
from .base import (
    BaseNotifier,
    NotificationResult,
    NotificationStatus,
    NotifierPermanentError,
)


class FileNotifier(BaseNotifier):
    """Appends completion events to a JSON or JSONL file."""

    def __init__(self, name: str, config: FileNotifierConfig):
        super().__init__(name, config)
        self.config: FileNotifierConfig = config

        self.output_path = Path(config.output_path)

        if config.create_dirs:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)

        if config.format not in ["json", "jsonl"]:
            raise NotifierPermanentError(f"Unsupported format: {config.format}", notifier=name)

    def notify(self, events: list[CompletionEvent]) -> list[NotificationResult]:
        """Write alerts to the output file."""
        records = [event.to_dict() for event in events]

        try:
            if self.config.format == "json":
                self._write_json_format(records)
            else:
                self._write_jsonl_format(records)

        except OSError as e:
            self.logger.warning(
                "Alert file write failed",
                notifier=self.name,
                output_path=str(self.output_path),
                error=str(e)
            )
            return [NotificationResult(
                status=NotificationStatus.FAILED,
                message=f"File system error: {str(e)}",
                error=e
            ) for _ in events]

        except (TypeError, ValueError) as e:
            self.logger.error(
                "Alert encoding failed",
                notifier=self.name,
                error=str(e)
            )
            return [NotificationResult(
                status=NotificationStatus.FAILED,
                message=f"JSON encoding error: {str(e)}",
                error=e
            ) for _ in events]

        for event in events:
            self.logger.info(
                "Alert written to file",
                notifier=self.name,
                instance_id=event.instance_id,
                output_path=str(self.output_path)
            )

        return [NotificationResult(
            status=NotificationStatus.SUCCESS,
            message=f"Written to {self.output_path}"
        ) for _ in events]

    def _write_json_format(self, records: list[dict[str, Any]]) -> None:
        """Rewrite the file as one JSON array including the new records."""
        existing: list[Any] = []
        if self.output_path.exists():
            try:
                with open(self.output_path) as f:
                    existing = json.load(f)
                    if not isinstance(existing, list):
                        existing = []
            except (OSError, json.JSONDecodeError):
                # Corrupted or empty file, start fresh
                existing = []

        payload = json.dumps(existing + records, indent=2)

        with open(self.output_path, 'w') as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            f.write(payload)

    def _write_jsonl_format(self, records: list[dict[str, Any]]) -> None:
        """Append one JSON object per line."""
        lines = [json.dumps(record) for record in records]

        with open(self.output_path, 'a') as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            for line in lines:
                f.write(line)
                f.write('\n')

    def health_check(self) -> bool:
        """Check if the output directory is writable."""
        try:
            test_file = self.output_path.parent / ".health_check_test"
            test_file.write_text("test")
            test_file.unlink()
            return True

        except Exception as e:
            self.logger.warning(
                "Health check failed",
                notifier=self.name,
                error=str(e)
            )
            return False
