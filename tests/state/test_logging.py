"""Tests for structured logging helpers."""

import io
import json

import structlog
from structlog.testing import capture_logs

from procman_app.config.defaults import LoggingParams
from procman_app.logging import configure_logging, get_logger
from procman_app.logging.config import (
    configure_logging_from,
    get_state_logger,
    get_store_logger,
    log_state_transition,
    log_store_mutation,
)


class TestLoggingHelpers:
    """Test state-transition and store-mutation log records."""

    def test_state_transition_record(self):
        with capture_logs() as logs:
            log_state_transition(
                structlog.get_logger("test"),
                instance_id=3,
                from_state="pending",
                to_state="notified",
                trigger="completed",
                context={"plot_id": 100},
            )

        assert logs == [{
            "instance_id": 3,
            "from_state": "pending",
            "to_state": "notified",
            "trigger": "completed",
            "context": {"plot_id": 100},
            "event": "State transition",
            "log_level": "info",
        }]

    def test_store_mutation_record(self):
        with capture_logs() as logs:
            log_store_mutation(structlog.get_logger("test"), "plots", "delete", 4768)

        assert logs[0]["event"] == "Store mutation"
        assert logs[0]["collection"] == "plots"
        assert logs[0]["record_id"] == 4768
        assert "context" not in logs[0]

    def test_subsystem_loggers(self):
        with capture_logs() as logs:
            get_state_logger("test").info("a")
            get_store_logger("test").info("b")

        assert logs[0]["subsystem"] == "state_machine"
        assert logs[1]["subsystem"] == "store"
        assert logs[1]["audit_trail"] is True


class TestConfigureLogging:
    def teardown_method(self):
        structlog.reset_defaults()

    def test_json_lines_to_stream(self):
        stream = io.StringIO()
        configure_logging(level="DEBUG", format_json=True, include_timestamp=False, stream=stream)

        get_logger("procman_app.test").debug("Tick", instance_id=3)

        record = json.loads(stream.getvalue().splitlines()[-1])
        assert record["event"] == "Tick"
        assert record["instance_id"] == 3
        assert record["level"] == "debug"

    def test_level_filters(self):
        stream = io.StringIO()
        configure_logging_from(LoggingParams(level="WARNING", format_json=True), stream=stream)

        get_logger("procman_app.test").info("hidden")
        get_logger("procman_app.test").warning("shown")

        assert "hidden" not in stream.getvalue()
        assert "shown" in stream.getvalue()
