"""Tests for completion notification dispatch."""

import json
from unittest.mock import Mock

from procman_app.config.notification import (
    NotificationConfig,
    NotificationDestination,
    NotificationMethod,
    StdoutNotifierConfig,
    create_callback_destination,
    create_file_destination,
)
from procman_app.notification import (
    BaseNotifier,
    CallbackNotifier,
    FileNotifier,
    NotificationResult,
    NotificationStatus,
    StdoutNotifier,
)
from procman_app.state.dispatcher import NotificationDispatcher
from procman_app.state.evaluator import evaluate_instances


def _evaluate(active_tracker, definitions, now):
    evaluated, _ = evaluate_instances(
        active_tracker.instances,
        {p.id: p for p in definitions.processes},
        {p.id: p for p in definitions.plots},
        now
    )
    return evaluated


class TestNotifierSetup:
    """Test notifier construction from configuration."""

    def test_builds_configured_notifiers(self, tmp_path):
        config = NotificationConfig(destinations=[
            NotificationDestination(
                name="console", method=NotificationMethod.STDOUT, config=StdoutNotifierConfig()
            ),
            create_file_destination("file", str(tmp_path / "alerts.jsonl")),
            create_callback_destination(),
        ])

        dispatcher = NotificationDispatcher(config, callback=Mock())

        assert isinstance(dispatcher.notifiers["console"], StdoutNotifier)
        assert isinstance(dispatcher.notifiers["file"], FileNotifier)
        assert isinstance(dispatcher.notifiers["callback"], CallbackNotifier)

    def test_callback_destination_without_callback_skipped(self):
        dispatcher = NotificationDispatcher(
            NotificationConfig(destinations=[create_callback_destination()])
        )

        assert dispatcher.notifiers == {}

    def test_disabled_destinations_skipped(self):
        dispatcher = NotificationDispatcher(
            NotificationConfig(destinations=[create_callback_destination(enabled=False)]),
            callback=Mock()
        )

        assert dispatcher.notifiers == {}

    def test_bad_file_format_logged_not_raised(self, tmp_path):
        dispatcher = NotificationDispatcher(NotificationConfig(destinations=[
            create_file_destination("file", str(tmp_path / "a.txt"), format="xml")
        ]))

        assert dispatcher.notifiers == {}


class TestDispatch:
    """Test the PENDING -> NOTIFIED transition."""

    def setup_method(self):
        self.callback = Mock()
        self.dispatcher = NotificationDispatcher(
            NotificationConfig(destinations=[create_callback_destination()]),
            callback=self.callback
        )

    def test_nothing_fires_before_completion(self, active_tracker, definitions):
        active_tracker.start(1, 100)

        result = self.dispatcher.dispatch(_evaluate(active_tracker, definitions, 60_000),
                                          active_tracker, 60_000)

        assert result.events == []
        assert len(result.instances) == 1
        self.callback.assert_not_called()

    def test_fires_once_on_completion(self, active_tracker, definitions):
        instance = active_tracker.start(1, 100)
        now = 3_600_001

        first = self.dispatcher.dispatch(_evaluate(active_tracker, definitions, now),
                                         active_tracker, now)
        second = self.dispatcher.dispatch(_evaluate(active_tracker, definitions, now + 1_000),
                                          active_tracker, now + 1_000)

        assert len(first.events) == 1
        event = first.events[0]
        assert event.instance_id == instance.id
        assert event.process_name == "Chicken"
        assert event.plot_name == "Farm"
        assert event.end_time_millis == 3_600_000
        assert event.notified_at == now
        assert first.instances[0].instance.notified is True
        assert active_tracker.get(instance.id).notified is True

        assert second.events == []
        self.callback.assert_called_once_with(event)

    def test_fires_again_after_reset(self, active_tracker, definitions, clock):
        instance = active_tracker.start(1, 100)
        self.dispatcher.dispatch(_evaluate(active_tracker, definitions, 3_600_001),
                                 active_tracker, 3_600_001)

        clock.set(3_700_000)
        active_tracker.reset(instance.id)
        later = 3_700_000 + 3_600_000

        result = self.dispatcher.dispatch(_evaluate(active_tracker, definitions, later),
                                          active_tracker, later)

        assert len(result.events) == 1
        assert self.callback.call_count == 2

    def test_stale_view_does_not_double_fire(self, active_tracker, definitions):
        """A view evaluated before another dispatch flipped the flag is ignored."""
        active_tracker.start(1, 100)
        stale = _evaluate(active_tracker, definitions, 3_600_001)

        self.dispatcher.dispatch(stale, active_tracker, 3_600_001)
        result = self.dispatcher.dispatch(stale, active_tracker, 3_600_001)

        assert result.events == []
        self.callback.assert_called_once()

    def test_callback_failure_keeps_notified(self, active_tracker, definitions):
        self.callback.side_effect = RuntimeError("speaker unplugged")
        instance = active_tracker.start(1, 100)

        result = self.dispatcher.dispatch(_evaluate(active_tracker, definitions, 3_600_001),
                                          active_tracker, 3_600_001)

        assert len(result.events) == 1
        assert len(result.failures) == 1
        assert result.failures[0].startswith("callback:")
        assert active_tracker.get(instance.id).notified is True

    def test_filters_restrict_destinations(self, active_tracker, definitions):
        handler = Mock(spec=BaseNotifier)
        handler.notify_with_retry.return_value = [NotificationResult(status=NotificationStatus.SUCCESS)]
        config = NotificationConfig(destinations=[
            NotificationDestination(
                name="other_plots", method=NotificationMethod.CALLBACK,
                config=None, plots_filter=[555]
            )
        ])
        dispatcher = NotificationDispatcher(config, notifiers={"other_plots": handler})
        active_tracker.start(1, 100)

        result = dispatcher.dispatch(_evaluate(active_tracker, definitions, 3_600_001),
                                     active_tracker, 3_600_001)

        assert len(result.events) == 1
        handler.notify_with_retry.assert_not_called()

    def test_file_notifier_receives_event(self, tmp_path, active_tracker, definitions):
        output = tmp_path / "alerts" / "done.jsonl"
        dispatcher = NotificationDispatcher(NotificationConfig(destinations=[
            create_file_destination("file", str(output))
        ]))
        active_tracker.start(1, 100)

        dispatcher.dispatch(_evaluate(active_tracker, definitions, 3_600_001),
                            active_tracker, 3_600_001)

        lines = output.read_text().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["process_name"] == "Chicken"

    def test_stats(self, active_tracker, definitions):
        active_tracker.start(1, 100)
        self.dispatcher.dispatch(_evaluate(active_tracker, definitions, 3_600_001),
                                 active_tracker, 3_600_001)

        assert self.dispatcher.get_stats()["callback"]["delivery_count"] == 1
