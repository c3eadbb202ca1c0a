"""
Record models for the tracked collections.

Plots and processes form the catalog; active processes are running
instances that reference one of each by id. All records are frozen: a
change produces a new record which the owning store swaps in.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional

MILLIS_PER_MINUTE = 60_000


def _require_int(data: dict[str, Any], *keys: str) -> int:
    """Read the first present key as a strict integer."""
    for key in keys:
        if key in data:
            value = data[key]
            if isinstance(value, float) and value.is_integer():
                return int(value)
            # bool is an int subclass and never a valid id or duration
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{key} must be an integer, got {value!r}")
            return value
    raise KeyError(keys[0])


def _require_str(data: dict[str, Any], key: str, default: Optional[str] = None) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {value!r}")
    return value


@dataclass(frozen=True)
class Plot:
    """A named location a process can run on."""
    id: int
    name: str
    description: str = ""

    def with_details(self, name: str, description: str) -> "Plot":
        return replace(self, name=name, description=description)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Plot":
        return cls(
            id=_require_int(data, "id"),
            name=_require_str(data, "name"),
            description=_require_str(data, "description", ""),
        )


@dataclass(frozen=True)
class Process:
    """A named task template with a fixed duration in minutes."""
    id: int
    name: str
    duration_minutes: int

    @property
    def duration_millis(self) -> int:
        return self.duration_minutes * MILLIS_PER_MINUTE

    def with_details(self, name: str, duration_minutes: int) -> "Process":
        return replace(self, name=name, duration_minutes=duration_minutes)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "duration": self.duration_minutes}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Process":
        duration = _require_int(data, "duration", "durationMinutes")
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        return cls(
            id=_require_int(data, "id"),
            name=_require_str(data, "name"),
            duration_minutes=duration,
        )


@dataclass(frozen=True)
class ActiveProcess:
    """A running occurrence of a process bound to a plot.

    The end time is always derived from ``start_time_millis`` and the
    referenced process duration; it is never stored.
    """
    id: int
    process_id: int
    plot_id: int
    start_time_millis: int
    notified: bool = False

    def with_restart(self, now_millis: int) -> "ActiveProcess":
        """Re-stamp the start time and return to the pending state."""
        return replace(self, start_time_millis=now_millis, notified=False)

    def with_notified(self) -> "ActiveProcess":
        """Mark the completion alert as fired."""
        return replace(self, notified=True)

    def end_time_millis(self, process: Process) -> int:
        return self.start_time_millis + process.duration_millis

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "processId": self.process_id,
            "plotId": self.plot_id,
            "startTime": self.start_time_millis,
            "notified": self.notified,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActiveProcess":
        notified = data.get("notified", False)
        if not isinstance(notified, bool):
            raise ValueError(f"notified must be a boolean, got {notified!r}")
        return cls(
            id=_require_int(data, "id"),
            process_id=_require_int(data, "processId"),
            plot_id=_require_int(data, "plotId"),
            start_time_millis=_require_int(data, "startTime", "startTimeMillis"),
            notified=notified,
        )
