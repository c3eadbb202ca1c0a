"""
Centralized logging configuration for the process tracker.

Everything logs through structlog with key-value context. Output goes
through the stdlib ``procman_app`` logger, whose single handler renders
either JSON lines or the structlog console format. Stores and the
dispatcher use the audit loggers below so that an instance can be
followed from start through completion and reset.
"""
import logging
import sys
from typing import Any, Optional, TextIO

import structlog
from structlog.types import FilteringBoundLogger, Processor

from ..config.defaults import LoggingParams

ROOT_LOGGER_NAME = "procman_app"


def _shared_processors(include_timestamp: bool, include_caller: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))
    return processors


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    stream: Optional[TextIO] = None
) -> None:
    """
    Configure structlog and the package's stdlib logger.

    Safe to call again: the previous handler is replaced, not stacked.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: Render JSON lines instead of the console format
        include_timestamp: Add an ISO timestamp to every record
        include_caller: Add filename and line number
        stream: Output stream, stdout by default
    """
    shared = _shared_processors(include_timestamp, include_caller)

    renderer: Processor = (
        structlog.processors.JSONRenderer() if format_json
        else structlog.dev.ConsoleRenderer(colors=stream is None and sys.stdout.isatty())
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    ))

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers = [handler]
    root.setLevel(level.upper())
    root.propagate = False

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, *shared,
                    structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging_from(params: LoggingParams, stream: Optional[TextIO] = None) -> None:
    """Configure logging from the ``logging`` section of the loaded config."""
    configure_logging(
        level=params.level,
        format_json=params.format_json,
        include_caller=params.include_caller,
        stream=stream,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """Return a structlog logger; ``name`` is typically ``__name__``."""
    return structlog.get_logger(name)


def _audit_logger(name: str, subsystem: str) -> FilteringBoundLogger:
    # Lazy proxy, so configure_logging after import still applies
    return structlog.get_logger(name, subsystem=subsystem, audit_trail=True)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """Logger for PENDING/NOTIFIED transitions of active instances."""
    return _audit_logger(name, "state_machine")


def get_store_logger(name: str) -> FilteringBoundLogger:
    """Logger for mutations of the plot, process and instance collections."""
    return _audit_logger(name, "store")


def log_state_transition(
    logger: FilteringBoundLogger,
    instance_id: int,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Record one state change of an active instance.

    Args:
        logger: Usually a state logger
        instance_id: Active process id
        from_state: State before the change
        to_state: State after the change
        trigger: Cause, e.g. "completed" or "reset"
        context: Extra fields nested under ``context``
    """
    fields: dict[str, Any] = {
        "instance_id": instance_id,
        "from_state": from_state,
        "to_state": to_state,
        "trigger": trigger,
    }
    if context:
        fields["context"] = context

    logger.info("State transition", **fields)


def log_store_mutation(
    logger: FilteringBoundLogger,
    collection: str,
    operation: str,
    record_id: Optional[int],
    context: Optional[dict[str, Any]] = None
) -> None:
    """Record a create/update/delete on one of the persisted collections.

    ``record_id`` is None for bulk operations such as clearing all instances.
    """
    fields: dict[str, Any] = {
        "collection": collection,
        "operation": operation,
        "record_id": record_id,
    }
    if context:
        fields["context"] = context

    logger.info("Store mutation", **fields)
