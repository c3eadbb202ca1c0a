"""
Process tracker coordinator.

Owns the plot and process catalog, the running instances, the
persistence gateway and the tick scheduler. The presentation layer talks
to a ProcessTracker only: every mutation goes through it, is serialized
behind one lock shared with the tick thread, and is mirrored to storage
afterwards.

Every operation returns an OperationResult; no exception raised by the
stores or the gateway escapes this boundary.
"""

import sqlite3
import threading
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import structlog

from .config.defaults import DefaultConfig, PersistenceParams
from .config.loader import ConfigLoader
from .config.notification import (
    NotificationConfig,
    NotificationMethod,
    create_callback_destination,
)
from .errors import (
    InvalidInputError,
    NotFoundError,
    PersistenceError,
    ReferenceNotFoundError,
)
from .models.records import ActiveProcess, Plot, Process
from .notification import AlertCallback
from .persistence.state_store import (
    MemoryKeyValueStore,
    PersistenceGateway,
    SQLiteKeyValueStore,
)
from .state.dispatcher import NotificationDispatcher
from .state.evaluator import evaluate_instances
from .state.models import EvaluatedInstance, TickResult
from .state.scheduler import TickScheduler
from .store.active import ActiveInstanceTracker
from .store.definitions import DefinitionStore
from .utils.time import (
    Clock,
    SystemClock,
    format_duration,
    format_remaining,
    format_timestamp,
    remaining_whole_minutes,
    resolve_timezone,
)

logger = structlog.get_logger(__name__)


class OperationStatus(str, Enum):
    """Outcome category of a tracker operation."""
    OK = "ok"
    INVALID_INPUT = "invalid_input"
    REFERENCE_NOT_FOUND = "reference_not_found"
    NOT_FOUND = "not_found"


@dataclass
class OperationResult:
    """Result of a tracker operation."""
    status: OperationStatus
    value: Any = None
    error_msg: Optional[str] = None
    persisted: bool = True

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.OK

    @classmethod
    def success(cls, value: Any = None, persisted: bool = True) -> "OperationResult":
        """Create successful result."""
        return cls(status=OperationStatus.OK, value=value, persisted=persisted)

    @classmethod
    def error(cls, status: OperationStatus, error_msg: str) -> "OperationResult":
        """Create rejected result. Nothing was changed, so nothing needed persisting."""
        return cls(status=status, error_msg=error_msg, persisted=True)


class ProcessTracker:
    """
    Context object for the timed process tracker.

    Lifecycle: construct, ``init()`` to load persisted state (seeding on
    first run), operate, ``teardown()`` to stop the periodic tick.
    """

    def __init__(
        self,
        config: Optional[DefaultConfig] = None,
        config_dir: Optional[Path] = None,
        gateway: Optional[PersistenceGateway] = None,
        clock: Optional[Clock] = None,
        notification_config: Optional[NotificationConfig] = None,
        on_complete: Optional[AlertCallback] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        seed_plots: Optional[Sequence[Plot]] = None,
        seed_processes: Optional[Sequence[Process]] = None
    ) -> None:
        """Initialize the tracker. Nothing is loaded until init()."""
        self.logger = logger

        self.config_loader = ConfigLoader.create(config_dir)
        self.config = config or self.config_loader.load_config()

        self.clock: Clock = clock or SystemClock()
        self.gateway = gateway or self._create_gateway(self.config.persistence)

        if dispatcher is None:
            notification_config = notification_config or self.config_loader.load_notification_config()
            if on_complete is not None:
                notification_config = self._with_callback_destination(notification_config)
            dispatcher = NotificationDispatcher(notification_config, callback=on_complete)
        self.dispatcher = dispatcher

        self.definitions = DefinitionStore()
        self.active = ActiveInstanceTracker(self.definitions, self.clock)
        self.scheduler = TickScheduler(self.tick, self.config.tracker.tick_interval_seconds)
        self.display_tz = resolve_timezone(self.config.display.timezone)

        self._seed_plots = seed_plots
        self._seed_processes = seed_processes
        self._lock = threading.RLock()
        # Serializes alert delivery between the tick thread and manual ticks
        self._delivery_lock = threading.RLock()
        self._initialized = False
        self._writes_suspended = False

        self.logger.info(
            "Process tracker created",
            backend=self.config.persistence.backend,
            tick_interval_seconds=self.config.tracker.tick_interval_seconds
        )

    def _create_gateway(self, params: PersistenceParams) -> PersistenceGateway:
        if params.backend == "memory":
            return PersistenceGateway(MemoryKeyValueStore())

        try:
            return PersistenceGateway(SQLiteKeyValueStore(params.db_path, params.timeout_seconds))
        except (sqlite3.Error, OSError) as e:
            self.logger.error(
                "Cannot open database, falling back to in-memory storage",
                db_path=params.db_path,
                error=str(e)
            )
            return PersistenceGateway(MemoryKeyValueStore())

    @staticmethod
    def _with_callback_destination(config: NotificationConfig) -> NotificationConfig:
        if any(d.method == NotificationMethod.CALLBACK for d in config.destinations):
            return config
        return replace(config, destinations=[*config.destinations, create_callback_destination()])

    # Lifecycle

    def init(self) -> "ProcessTracker":
        """Load persisted collections, seeding any that are missing.

        If the store cannot be read, the seeds are used in memory and storage
        writes stay suspended for this tracker so the stored data survives.
        """
        with self._lock:
            if self._initialized:
                return self

            if self._seed_plots is not None and self._seed_processes is not None:
                seed_plots, seed_processes = list(self._seed_plots), list(self._seed_processes)
            else:
                seed_plots, seed_processes = self.config_loader.load_seed_catalog()
                if self._seed_plots is not None:
                    seed_plots = list(self._seed_plots)
                if self._seed_processes is not None:
                    seed_processes = list(self._seed_processes)

            try:
                plots, processes, active = self.gateway.load_all(seed_plots, seed_processes)
            except PersistenceError as e:
                # Saving over a store we could not read would replace the user's data
                self.logger.error(
                    "Failed to load persisted state, using seed data with storage writes suspended",
                    error=str(e)
                )
                plots, processes, active = seed_plots, seed_processes, []
                self._writes_suspended = True

            self.definitions.replace_all(plots, processes)
            self.active.replace_all(active)
            self._initialized = True

            self.logger.info(
                "Process tracker initialized",
                plots=len(plots),
                processes=len(processes),
                active_processes=len(active)
            )

        if self.config.tracker.auto_start_ticking:
            self.start_ticking()
        return self

    def teardown(self) -> None:
        """Stop the periodic tick. State stays in memory and in storage."""
        self.stop_ticking()
        self.logger.info("Process tracker torn down")

    def __enter__(self) -> "ProcessTracker":
        return self.init()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    # Read accessors

    @property
    def plots(self) -> list[Plot]:
        with self._lock:
            return self.definitions.plots

    @property
    def processes(self) -> list[Process]:
        with self._lock:
            return self.definitions.processes

    @property
    def active_processes(self) -> list[ActiveProcess]:
        with self._lock:
            return self.active.instances

    def get_plot(self, plot_id: int) -> Optional[Plot]:
        with self._lock:
            return self.definitions.get_plot(plot_id)

    def get_process(self, process_id: int) -> Optional[Process]:
        with self._lock:
            return self.definitions.get_process(process_id)

    def get_active_process(self, instance_id: int) -> Optional[ActiveProcess]:
        with self._lock:
            return self.active.get(instance_id)

    # Plot operations

    def create_plot(self, name: str, description: str = "", plot_id: Optional[int] = None) -> OperationResult:
        return self._mutate(
            "create_plot",
            lambda: (self.definitions.create_plot(name, description, plot_id), True)
        )

    def update_plot(self, plot_id: int, name: str, description: str) -> OperationResult:
        return self._mutate(
            "update_plot",
            lambda: (self.definitions.update_plot(plot_id, name, description), True)
        )

    def delete_plot(self, plot_id: int) -> OperationResult:
        return self._mutate(
            "delete_plot",
            lambda: (None, self.definitions.delete_plot(plot_id))
        )

    # Process operations

    def create_process(self, name: str, duration_minutes: int) -> OperationResult:
        return self._mutate(
            "create_process",
            lambda: (self.definitions.create_process(name, duration_minutes), True)
        )

    def update_process(self, process_id: int, name: str, duration_minutes: int) -> OperationResult:
        return self._mutate(
            "update_process",
            lambda: (self.definitions.update_process(process_id, name, duration_minutes), True)
        )

    def delete_process(self, process_id: int) -> OperationResult:
        return self._mutate(
            "delete_process",
            lambda: (None, self.definitions.delete_process(process_id))
        )

    # Active process operations

    def start_process(self, process_id: int, plot_id: int) -> OperationResult:
        return self._mutate(
            "start_process",
            lambda: (self.active.start(process_id, plot_id), True)
        )

    def reset_process(self, instance_id: int) -> OperationResult:
        return self._mutate(
            "reset_process",
            lambda: (self.active.reset(instance_id), True)
        )

    def delete_active_process(self, instance_id: int) -> OperationResult:
        return self._mutate(
            "delete_active_process",
            lambda: (None, self.active.delete(instance_id))
        )

    def clear_active_processes(self) -> OperationResult:
        def clear() -> tuple[int, bool]:
            removed = self.active.clear()
            return removed, removed > 0

        return self._mutate("clear_active_processes", clear)

    def _mutate(self, operation: str, apply: Callable[[], tuple[Any, bool]]) -> OperationResult:
        """Apply a store mutation under the lock and mirror it to storage."""
        with self._lock:
            try:
                value, changed = apply()
            except InvalidInputError as e:
                self.logger.warning("Rejected invalid input", operation=operation, error=str(e),
                                    field=e.field, value=e.value)
                return OperationResult.error(OperationStatus.INVALID_INPUT, str(e))
            except ReferenceNotFoundError as e:
                self.logger.warning("Rejected unknown reference", operation=operation,
                                    process_id=e.process_id, plot_id=e.plot_id, missing=e.missing)
                return OperationResult.error(OperationStatus.REFERENCE_NOT_FOUND, str(e))
            except NotFoundError as e:
                self.logger.info("Target not found", operation=operation,
                                 collection=e.collection, record_id=e.record_id)
                return OperationResult.error(OperationStatus.NOT_FOUND, str(e))

            if not changed:
                return OperationResult.success(value)

            persistence_error = self._persist()
            return OperationResult(
                status=OperationStatus.OK,
                value=value,
                error_msg=persistence_error,
                persisted=persistence_error is None
            )

    @property
    def writes_suspended(self) -> bool:
        """True when the stored state could not be loaded and is left untouched."""
        return self._writes_suspended

    def _persist(self) -> Optional[str]:
        """Write all three collections; return the error message on failure."""
        if self._writes_suspended:
            return "Storage writes suspended: persisted state could not be loaded"

        try:
            self.gateway.save_all(
                self.definitions.plots,
                self.definitions.processes,
                self.active.instances
            )
        except PersistenceError as e:
            self.logger.error(
                "Failed to persist state",
                operation=e.operation,
                target=e.target,
                error=str(e)
            )
            return str(e)
        return None

    # Evaluation

    def evaluate(self, now: Optional[int] = None) -> list[EvaluatedInstance]:
        """Sorted evaluated view of every non-orphaned instance."""
        with self._lock:
            evaluated, _orphaned = self._evaluate(self.clock.now_millis() if now is None else now)
            return evaluated

    def _evaluate(self, now: int) -> tuple[list[EvaluatedInstance], list[int]]:
        processes = {process.id: process for process in self.definitions.processes}
        plots = {plot.id: plot for plot in self.definitions.plots}
        return evaluate_instances(self.active.instances, processes, plots, now)

    def tick(self) -> TickResult:
        """
        Recompute the evaluated view and fire due completion alerts.

        Runs on the scheduler thread or on demand. The PENDING -> NOTIFIED
        flips and their persistence happen under the tracker lock; the
        alerts are delivered after it is released, so a slow notifier
        never holds up CRUD calls.
        """
        with self._lock:
            now = self.clock.now_millis()
            evaluated, orphaned = self._evaluate(now)

            dispatch = self.dispatcher.dispatch(evaluated, self.active, now, deliver=False)

            persistence_error = None
            if dispatch.events:
                persistence_error = self._persist()

        failures: list[str] = []
        if dispatch.events:
            with self._delivery_lock:
                failures = self.dispatcher.deliver(dispatch.events)

        return TickResult(
            evaluated_at=now,
            instances=dispatch.instances,
            events=dispatch.events,
            orphaned_ids=orphaned,
            notification_failures=failures,
            persistence_error=persistence_error,
        )

    def start_ticking(self) -> None:
        self.scheduler.start()

    def stop_ticking(self) -> None:
        self.scheduler.stop()

    @property
    def is_ticking(self) -> bool:
        return self.scheduler.is_running

    # Display

    def describe(self, item: EvaluatedInstance) -> dict[str, Any]:
        """Render an evaluated instance with the configured display settings."""
        fmt = self.config.display.timestamp_format
        return {
            "id": item.instance.id,
            "process": item.process.name,
            "plot": item.plot.name,
            "plot_description": item.plot.description,
            "duration": format_duration(item.process.duration_minutes),
            "start": format_timestamp(item.instance.start_time_millis, self.display_tz, fmt),
            "end": format_timestamp(item.end_time_millis, self.display_tz, fmt),
            "remaining": format_remaining(item.remaining_millis),
            "remaining_minutes": remaining_whole_minutes(item.remaining_millis),
            "status": item.status.value,
            "notified": item.instance.notified,
        }
