"""Configuration for completion alert notifiers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class NotificationMethod(Enum):
    """Supported completion alert methods."""
    CALLBACK = "callback"
    FILE_OUTPUT = "file_output"
    STDOUT = "stdout"


@dataclass(frozen=True)
class CallbackNotifierConfig:
    """Configuration for the caller-supplied alert hook."""
    swallow_errors: bool = True


@dataclass(frozen=True)
class FileNotifierConfig:
    """Configuration for file-based alerts."""
    output_path: str
    format: str = "jsonl"  # json, jsonl
    create_dirs: bool = True


@dataclass(frozen=True)
class StdoutNotifierConfig:
    """Configuration for stdout alerts."""
    format: str = "pretty"  # json, pretty
    include_timestamp: bool = True
    bell: bool = True


@dataclass(frozen=True)
class NotificationDestination:
    """Single completion alert destination."""
    name: str
    method: NotificationMethod
    config: Any  # CallbackNotifierConfig | FileNotifierConfig | StdoutNotifierConfig
    enabled: bool = True

    # Filtering options
    processes_filter: Optional[list[int]] = None   # Only alert for these process ids
    plots_filter: Optional[list[int]] = None       # Only alert for these plot ids


@dataclass(frozen=True)
class NotificationConfig:
    """Complete notification configuration."""
    destinations: list[NotificationDestination]
    enabled: bool = True

    # Error handling
    failure_retry_attempts: int = 0
    failure_retry_delay_seconds: float = 0.0


def get_default_notification_config() -> NotificationConfig:
    """Get default notification configuration."""
    return NotificationConfig(
        destinations=[
            NotificationDestination(
                name="stdout",
                method=NotificationMethod.STDOUT,
                config=StdoutNotifierConfig(
                    format="pretty",
                    include_timestamp=True,
                    bell=True
                ),
                enabled=True
            )
        ],
        enabled=True,
        failure_retry_attempts=0,
        failure_retry_delay_seconds=0.0
    )


def create_callback_destination(
    name: str = "callback",
    enabled: bool = True,
    **kwargs
) -> NotificationDestination:
    """Create a destination for the presentation layer's alert hook."""
    return NotificationDestination(
        name=name,
        method=NotificationMethod.CALLBACK,
        config=CallbackNotifierConfig(**kwargs),
        enabled=enabled
    )


def create_file_destination(
    name: str,
    output_path: str,
    format: str = "jsonl",
    enabled: bool = True,
    **kwargs
) -> NotificationDestination:
    """Create file notification destination."""
    return NotificationDestination(
        name=name,
        method=NotificationMethod.FILE_OUTPUT,
        config=FileNotifierConfig(
            output_path=output_path,
            format=format,
            **kwargs
        ),
        enabled=enabled
    )


def parse_notification_config(data: dict[str, Any]) -> NotificationConfig:
    """Build a NotificationConfig from the ``notification`` settings section.

    Raises:
        ValueError: on an unknown method or a malformed destination
    """
    destinations = []
    for entry in data.get("destinations", []):
        method = NotificationMethod(entry["method"])
        options = dict(entry.get("config") or {})

        if method == NotificationMethod.STDOUT:
            config: Any = StdoutNotifierConfig(**options)
        elif method == NotificationMethod.FILE_OUTPUT:
            config = FileNotifierConfig(**options)
        else:
            config = CallbackNotifierConfig(**options)

        destinations.append(NotificationDestination(
            name=entry.get("name", method.value),
            method=method,
            config=config,
            enabled=entry.get("enabled", True),
            processes_filter=entry.get("processes_filter"),
            plots_filter=entry.get("plots_filter"),
        ))

    return NotificationConfig(
        destinations=destinations,
        enabled=data.get("enabled", True),
        failure_retry_attempts=data.get("failure_retry_attempts", 0),
        failure_retry_delay_seconds=data.get("failure_retry_delay_seconds", 0.0),
    )
