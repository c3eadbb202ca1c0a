"""
State data models for active-instance evaluation.

This module defines the immutable views produced by the evaluator on
each tick and the events produced by the notification dispatcher.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..models.records import ActiveProcess, Plot, Process


class InstanceState(str, Enum):
    """Notification lifecycle of an active instance."""
    PENDING = "pending"
    NOTIFIED = "notified"


class ProgressStatus(str, Enum):
    """Display status of an evaluated instance."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class EvaluatedInstance:
    """An active instance joined with its definitions at a point in time."""

    instance: ActiveProcess
    process: Process
    plot: Plot
    evaluated_at: int                                # Clock reading, epoch ms
    remaining_millis: int                            # Signed; <= 0 means complete
    end_time_millis: int

    @property
    def is_complete(self) -> bool:
        return self.remaining_millis <= 0

    @property
    def status(self) -> ProgressStatus:
        return ProgressStatus.COMPLETED if self.is_complete else ProgressStatus.IN_PROGRESS

    @property
    def state(self) -> InstanceState:
        return InstanceState.NOTIFIED if self.instance.notified else InstanceState.PENDING

    @property
    def needs_notification(self) -> bool:
        return self.is_complete and not self.instance.notified


@dataclass(frozen=True)
class CompletionEvent:
    """A single PENDING → NOTIFIED transition, handed to notifiers."""

    instance_id: int
    process_id: int
    plot_id: int
    process_name: str
    plot_name: str
    start_time_millis: int
    end_time_millis: int
    notified_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "process_id": self.process_id,
            "plot_id": self.plot_id,
            "process_name": self.process_name,
            "plot_name": self.plot_name,
            "start_time": self.start_time_millis,
            "end_time": self.end_time_millis,
            "notified_at": self.notified_at,
        }


@dataclass(frozen=True)
class TickResult:
    """Outcome of one evaluation tick."""

    evaluated_at: int
    instances: list[EvaluatedInstance] = field(default_factory=list)
    events: list[CompletionEvent] = field(default_factory=list)
    orphaned_ids: list[int] = field(default_factory=list)
    notification_failures: list[str] = field(default_factory=list)
    persistence_error: Optional[str] = None
