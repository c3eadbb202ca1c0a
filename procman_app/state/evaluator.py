"""
Time evaluation for active instances.

Pure functions of ``(instance, process, now)``: nothing here reads the
clock or mutates a record. The evaluated view joins every instance with
its process and plot, skips orphans whose definitions were deleted, and
orders the result by remaining time so the soonest-to-complete instances
come first.
"""

from typing import Iterable, Mapping

import structlog

from ..models.records import ActiveProcess, Plot, Process
from .models import EvaluatedInstance

logger = structlog.get_logger(__name__)


def end_time_millis(instance: ActiveProcess, process: Process) -> int:
    """Scheduled completion time in epoch milliseconds."""
    return instance.start_time_millis + process.duration_minutes * 60_000


def remaining_millis(instance: ActiveProcess, process: Process, now: int) -> int:
    """Signed time until completion; zero or negative means complete."""
    return end_time_millis(instance, process) - now


def is_complete(instance: ActiveProcess, process: Process, now: int) -> bool:
    return remaining_millis(instance, process, now) <= 0


def evaluate_instance(
    instance: ActiveProcess,
    process: Process,
    plot: Plot,
    now: int
) -> EvaluatedInstance:
    """Join one instance with its definitions at ``now``."""
    end_time = end_time_millis(instance, process)
    return EvaluatedInstance(
        instance=instance,
        process=process,
        plot=plot,
        evaluated_at=now,
        remaining_millis=end_time - now,
        end_time_millis=end_time,
    )


def sort_key(evaluated: EvaluatedInstance) -> tuple[int, int]:
    """Ascending remaining time, instance id as tie-break."""
    return evaluated.remaining_millis, evaluated.instance.id


def evaluate_instances(
    instances: Iterable[ActiveProcess],
    processes: Mapping[int, Process],
    plots: Mapping[int, Plot],
    now: int
) -> tuple[list[EvaluatedInstance], list[int]]:
    """
    Evaluate every instance whose process and plot still exist.

    Args:
        instances: Active instances in any order
        processes: Process definitions keyed by id
        plots: Plot definitions keyed by id
        now: Current time in epoch milliseconds

    Returns:
        Tuple of (evaluated instances sorted by remaining time,
        ids of orphaned instances that were skipped)
    """
    evaluated = []
    orphaned = []

    for instance in instances:
        process = processes.get(instance.process_id)
        plot = plots.get(instance.plot_id)

        if process is None or plot is None:
            orphaned.append(instance.id)
            logger.debug(
                "Skipping orphaned active process",
                instance_id=instance.id,
                process_id=instance.process_id,
                plot_id=instance.plot_id,
                missing_process=process is None,
                missing_plot=plot is None
            )
            continue

        evaluated.append(evaluate_instance(instance, process, plot, now))

    evaluated.sort(key=sort_key)
    return evaluated, orphaned
