"""
Active-instance tracker.

Holds the running ActiveProcess instances. Starting an instance resolves
its process and plot against the definition store at call time; after
that the references are plain ids and may dangle if a definition is
deleted. Ordering for display belongs to the evaluator.
"""

from typing import Iterable, Optional

from ..errors import NotFoundError, ReferenceNotFoundError
from ..logging.config import (
    get_state_logger,
    get_store_logger,
    log_state_transition,
    log_store_mutation,
)
from ..models.records import ActiveProcess
from ..state.models import InstanceState
from ..utils.ids import IdAllocator
from ..utils.time import Clock
from .definitions import DefinitionStore, validate_id

store_logger = get_store_logger(__name__)
state_logger = get_state_logger(__name__)


class ActiveInstanceTracker:
    """The set of running process instances."""

    def __init__(
        self,
        definitions: DefinitionStore,
        clock: Clock,
        instances: Optional[Iterable[ActiveProcess]] = None
    ) -> None:
        self.logger = store_logger
        self.definitions = definitions
        self.clock = clock
        self._instances: dict[int, ActiveProcess] = {}
        self._ids = IdAllocator()
        self.replace_all(instances or [])

    def replace_all(self, instances: Iterable[ActiveProcess]) -> None:
        """Swap in a loaded instance set."""
        self._instances = {instance.id: instance for instance in instances}
        self._ids.observe(self._instances)

    @property
    def instances(self) -> list[ActiveProcess]:
        return list(self._instances.values())

    def get(self, instance_id: int) -> Optional[ActiveProcess]:
        return self._instances.get(instance_id)

    def __len__(self) -> int:
        return len(self._instances)

    def start(self, process_id: int, plot_id: int) -> ActiveProcess:
        """
        Start a new instance of a process on a plot.

        Args:
            process_id: Id of an existing process definition
            plot_id: Id of an existing plot

        Returns:
            The created instance, stamped with the current time and pending

        Raises:
            InvalidInputError: if either id is not an integer
            ReferenceNotFoundError: if either id does not resolve right now
        """
        validate_id(process_id, "process_id")
        validate_id(plot_id, "plot_id")

        missing = []
        if self.definitions.get_process(process_id) is None:
            missing.append("process")
        if self.definitions.get_plot(plot_id) is None:
            missing.append("plot")

        if missing:
            raise ReferenceNotFoundError(
                f"Cannot start: unknown {' and '.join(missing)}",
                process_id=process_id,
                plot_id=plot_id,
                missing=missing
            )

        instance = ActiveProcess(
            id=self._ids.allocate(self._instances),
            process_id=process_id,
            plot_id=plot_id,
            start_time_millis=self.clock.now_millis(),
            notified=False,
        )
        self._instances[instance.id] = instance

        log_store_mutation(
            self.logger, "activeProcesses", "start", instance.id,
            {"process_id": process_id, "plot_id": plot_id,
             "start_time_millis": instance.start_time_millis}
        )
        return instance

    def reset(self, instance_id: int) -> ActiveProcess:
        """Restart an instance from now and return it to the pending state.

        Raises:
            NotFoundError: if no instance has ``instance_id``
        """
        validate_id(instance_id)
        current = self._instances.get(instance_id)
        if current is None:
            raise NotFoundError(
                "Active process not found",
                collection="activeProcesses",
                record_id=instance_id
            )

        restarted = current.with_restart(self.clock.now_millis())
        self._instances[instance_id] = restarted

        if current.notified:
            log_state_transition(
                state_logger,
                instance_id=instance_id,
                from_state=InstanceState.NOTIFIED.value,
                to_state=InstanceState.PENDING.value,
                trigger="reset",
            )
        log_store_mutation(
            self.logger, "activeProcesses", "reset", instance_id,
            {"start_time_millis": restarted.start_time_millis}
        )
        return restarted

    def mark_notified(self, instance_id: int) -> Optional[ActiveProcess]:
        """Flip an instance to notified. Returns None if it is gone or already notified."""
        current = self._instances.get(instance_id)
        if current is None or current.notified:
            return None

        notified = current.with_notified()
        self._instances[instance_id] = notified
        return notified

    def delete(self, instance_id: int) -> bool:
        """Remove an instance. Returns False when it was already absent."""
        validate_id(instance_id)
        if self._instances.pop(instance_id, None) is None:
            return False

        log_store_mutation(self.logger, "activeProcesses", "delete", instance_id)
        return True

    def clear(self) -> int:
        """Remove every instance and return how many were removed."""
        removed = len(self._instances)
        self._instances = {}

        if removed:
            log_store_mutation(self.logger, "activeProcesses", "clear", None, {"removed": removed})
        return removed
