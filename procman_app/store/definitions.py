"""
Definition store for plots and process definitions.

Records are kept in insertion order keyed by id. Updates replace the
record in place, deletes are idempotent. Persistence is the owning
tracker's concern; this store only mutates memory.
"""

from typing import Iterable, Optional

from ..errors import InvalidInputError, NotFoundError
from ..logging.config import get_store_logger, log_store_mutation
from ..models.records import Plot, Process
from ..utils.ids import IdAllocator

store_logger = get_store_logger(__name__)


def _validate_text(value: str, field: str) -> str:
    if not isinstance(value, str):
        raise InvalidInputError(f"{field} must be a string", field=field, value=value)
    return value


def _validate_name(name: str) -> str:
    if not _validate_text(name, "name").strip():
        raise InvalidInputError("Name must not be blank", field="name", value=name)
    return name


def validate_id(record_id: int, field: str = "id") -> int:
    """Reject anything but a plain int id; bool is not accepted."""
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        raise InvalidInputError(f"{field} must be an integer", field=field, value=record_id)
    return record_id


def _validate_duration(duration_minutes: int) -> int:
    if (isinstance(duration_minutes, bool)
            or not isinstance(duration_minutes, int)
            or duration_minutes <= 0):
        raise InvalidInputError(
            "Process duration must be a positive number of minutes",
            field="duration_minutes",
            value=duration_minutes
        )
    return duration_minutes


class DefinitionStore:
    """Catalog of Plot and Process definitions."""

    def __init__(
        self,
        plots: Optional[Iterable[Plot]] = None,
        processes: Optional[Iterable[Process]] = None
    ) -> None:
        self.logger = store_logger
        self._plots: dict[int, Plot] = {}
        self._processes: dict[int, Process] = {}
        self._plot_ids = IdAllocator()
        self._process_ids = IdAllocator()
        self.replace_all(plots or [], processes or [])

    def replace_all(self, plots: Iterable[Plot], processes: Iterable[Process]) -> None:
        """Swap in a loaded catalog. Later duplicates of an id win."""
        self._plots = {plot.id: plot for plot in plots}
        self._processes = {process.id: process for process in processes}
        self._plot_ids.observe(self._plots)
        self._process_ids.observe(self._processes)

    @property
    def plots(self) -> list[Plot]:
        return list(self._plots.values())

    @property
    def processes(self) -> list[Process]:
        return list(self._processes.values())

    def get_plot(self, plot_id: int) -> Optional[Plot]:
        return self._plots.get(plot_id)

    def get_process(self, process_id: int) -> Optional[Process]:
        return self._processes.get(process_id)

    # Plots

    def create_plot(self, name: str, description: str = "", plot_id: Optional[int] = None) -> Plot:
        """
        Add a plot to the catalog.

        Args:
            name: Display name, not required to be unique
            description: Free-form description
            plot_id: Explicit id (zero and negative allowed); allocated when None

        Returns:
            The created Plot

        Raises:
            InvalidInputError: if ``plot_id`` is already taken or not an integer
        """
        _validate_name(name)
        _validate_text(description, "description")

        if plot_id is None:
            plot_id = self._plot_ids.allocate(self._plots)
        elif validate_id(plot_id) in self._plots:
            raise InvalidInputError("Plot id already exists", field="id", value=plot_id)
        else:
            self._plot_ids.observe([plot_id])

        plot = Plot(id=plot_id, name=name, description=description)
        self._plots[plot.id] = plot

        log_store_mutation(self.logger, "plots", "create", plot.id, {"name": name})
        return plot

    def update_plot(self, plot_id: int, name: str, description: str) -> Plot:
        """Replace name and description of an existing plot.

        Raises:
            NotFoundError: if no plot has ``plot_id``
        """
        validate_id(plot_id)
        _validate_name(name)
        _validate_text(description, "description")

        current = self._plots.get(plot_id)
        if current is None:
            raise NotFoundError("Plot not found", collection="plots", record_id=plot_id)

        updated = current.with_details(name, description)
        self._plots[plot_id] = updated

        log_store_mutation(self.logger, "plots", "update", plot_id, {"name": name})
        return updated

    def delete_plot(self, plot_id: int) -> bool:
        """Remove a plot. Returns False when it was already absent."""
        validate_id(plot_id)
        if self._plots.pop(plot_id, None) is None:
            return False

        log_store_mutation(self.logger, "plots", "delete", plot_id)
        return True

    # Processes

    def create_process(self, name: str, duration_minutes: int) -> Process:
        """
        Add a process definition to the catalog.

        Raises:
            InvalidInputError: if ``duration_minutes`` is not a positive integer
        """
        _validate_name(name)
        _validate_duration(duration_minutes)

        process = Process(
            id=self._process_ids.allocate(self._processes),
            name=name,
            duration_minutes=duration_minutes,
        )
        self._processes[process.id] = process

        log_store_mutation(
            self.logger, "processes", "create", process.id,
            {"name": name, "duration_minutes": duration_minutes}
        )
        return process

    def update_process(self, process_id: int, name: str, duration_minutes: int) -> Process:
        """Replace name and duration of an existing process definition.

        Raises:
            InvalidInputError: if ``duration_minutes`` is not a positive integer
            NotFoundError: if no process has ``process_id``
        """
        validate_id(process_id)
        _validate_name(name)
        _validate_duration(duration_minutes)

        current = self._processes.get(process_id)
        if current is None:
            raise NotFoundError("Process not found", collection="processes", record_id=process_id)

        updated = current.with_details(name, duration_minutes)
        self._processes[process_id] = updated

        log_store_mutation(
            self.logger, "processes", "update", process_id,
            {"name": name, "duration_minutes": duration_minutes}
        )
        return updated

    def delete_process(self, process_id: int) -> bool:
        """Remove a process definition. Returns False when it was already absent.

        Active instances referencing it are left in place and become orphaned.
        """
        validate_id(process_id)
        if self._processes.pop(process_id, None) is None:
            return False

        log_store_mutation(self.logger, "processes", "delete", process_id)
        return True
