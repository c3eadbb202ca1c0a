"""Tests for remaining-time evaluation."""

from procman_app.models.records import ActiveProcess, Plot, Process
from procman_app.state.evaluator import (
    end_time_millis,
    evaluate_instance,
    evaluate_instances,
    is_complete,
    remaining_millis,
)
from procman_app.state.models import InstanceState, ProgressStatus

CHICKEN = Process(id=1, name="Chicken", duration_minutes=60)
HONEY = Process(id=2, name="Honey", duration_minutes=45)
FARM = Plot(id=100, name="Farm")


def _instance(instance_id, process_id=1, start=0, notified=False):
    return ActiveProcess(
        id=instance_id, process_id=process_id, plot_id=100,
        start_time_millis=start, notified=notified
    )


class TestRemainingTime:
    """Test the pure time functions."""

    def test_full_duration_at_start(self):
        instance = _instance(1)

        assert end_time_millis(instance, CHICKEN) == 3_600_000
        assert remaining_millis(instance, CHICKEN, 0) == 3_600_000
        assert not is_complete(instance, CHICKEN, 0)

    def test_complete_exactly_at_end(self):
        """Zero remaining counts as complete."""
        assert is_complete(_instance(1), CHICKEN, 3_600_000)

    def test_remaining_goes_negative(self):
        assert remaining_millis(_instance(1), CHICKEN, 3_600_001) == -1

    def test_end_time_follows_current_duration(self):
        """The end time is derived, so editing a duration moves it."""
        longer = CHICKEN.with_details("Chicken", 90)

        assert end_time_millis(_instance(1, start=1_000), longer) == 1_000 + 90 * 60_000


class TestEvaluateInstance:
    """Test the evaluated view of a single instance."""

    def test_in_progress(self):
        item = evaluate_instance(_instance(1), CHICKEN, FARM, 60_000)

        assert item.remaining_millis == 3_540_000
        assert item.end_time_millis == 3_600_000
        assert item.evaluated_at == 60_000
        assert item.status == ProgressStatus.IN_PROGRESS
        assert item.state == InstanceState.PENDING
        assert not item.needs_notification

    def test_complete_pending_needs_notification(self):
        item = evaluate_instance(_instance(1), CHICKEN, FARM, 3_600_001)

        assert item.status == ProgressStatus.COMPLETED
        assert item.needs_notification

    def test_complete_notified_does_not(self):
        item = evaluate_instance(_instance(1, notified=True), CHICKEN, FARM, 3_600_001)

        assert item.state == InstanceState.NOTIFIED
        assert not item.needs_notification


class TestEvaluateInstances:
    """Test joining, ordering and orphan handling."""

    def test_sorted_by_remaining_then_id(self):
        instances = [
            _instance(3, process_id=1, start=0),            # 60 min left
            _instance(1, process_id=2, start=0),            # 45 min left
            _instance(2, process_id=2, start=0),            # 45 min left, tie
        ]

        evaluated, orphaned = evaluate_instances(
            instances, {1: CHICKEN, 2: HONEY}, {100: FARM}, 0
        )

        assert [item.instance.id for item in evaluated] == [1, 2, 3]
        assert orphaned == []

    def test_overdue_sorts_first(self):
        instances = [_instance(1, start=0), _instance(2, start=-7_200_000)]

        evaluated, _ = evaluate_instances(instances, {1: CHICKEN}, {100: FARM}, 0)

        assert evaluated[0].instance.id == 2
        assert evaluated[0].remaining_millis == -3_600_000

    def test_orphans_skipped(self):
        """Instances whose process or plot is gone are reported, not evaluated."""
        instances = [
            _instance(1),
            _instance(2, process_id=99),
            ActiveProcess(id=3, process_id=1, plot_id=555, start_time_millis=0),
        ]

        evaluated, orphaned = evaluate_instances(instances, {1: CHICKEN}, {100: FARM}, 0)

        assert [item.instance.id for item in evaluated] == [1]
        assert orphaned == [2, 3]

    def test_empty(self):
        assert evaluate_instances([], {}, {}, 0) == ([], [])
