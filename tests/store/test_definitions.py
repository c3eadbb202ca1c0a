"""Tests for the plot and process definition store."""

import pytest

from procman_app.errors import InvalidInputError, NotFoundError
from procman_app.models.records import Plot, Process
from procman_app.store.definitions import DefinitionStore


class TestPlotOperations:
    """Test plot create/update/delete."""

    def setup_method(self):
        self.store = DefinitionStore(
            plots=[Plot(id=4768, name="4768", description="Farm"), Plot(id=-1, name="Sauna")]
        )

    def test_create_plot_allocates_id_above_existing(self):
        """Allocated ids never collide with loaded ones."""
        plot = self.store.create_plot("Orchard", "Apples")

        assert plot.id == 4769
        assert plot.name == "Orchard"
        assert plot.description == "Apples"
        assert self.store.get_plot(4769) == plot

    def test_create_plot_with_explicit_id(self):
        """Zero and negative explicit ids are accepted."""
        plot = self.store.create_plot("Terraville", "x", plot_id=0)

        assert plot.id == 0
        assert self.store.get_plot(0) == plot

    def test_create_plot_explicit_id_collision_rejected(self):
        """Explicit ids must be unique."""
        with pytest.raises(InvalidInputError) as exc_info:
            self.store.create_plot("Dup", plot_id=-1)

        assert exc_info.value.field == "id"
        assert self.store.get_plot(-1).name == "Sauna"

    def test_create_plot_non_integer_id_rejected(self):
        with pytest.raises(InvalidInputError):
            self.store.create_plot("Bad", plot_id="12")

    def test_create_plot_blank_name_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            self.store.create_plot("   ")

        assert exc_info.value.field == "name"

    def test_explicit_id_raises_high_water_mark(self):
        """Later allocations skip past a large explicit id."""
        self.store.create_plot("Far", plot_id=9000)
        plot = self.store.create_plot("Next")

        assert plot.id == 9001

    def test_update_plot(self):
        updated = self.store.update_plot(4768, "Main farm", "Farm (60x)")

        assert updated == Plot(id=4768, name="Main farm", description="Farm (60x)")
        assert self.store.get_plot(4768) == updated

    def test_update_missing_plot(self):
        with pytest.raises(NotFoundError) as exc_info:
            self.store.update_plot(1, "x", "y")

        assert exc_info.value.collection == "plots"
        assert exc_info.value.record_id == 1

    def test_delete_plot_is_idempotent(self):
        assert self.store.delete_plot(4768) is True
        assert self.store.delete_plot(4768) is False
        assert self.store.get_plot(4768) is None

    def test_plots_returns_copy_in_insertion_order(self):
        plots = self.store.plots
        plots.clear()

        assert [plot.id for plot in self.store.plots] == [4768, -1]


class TestProcessOperations:
    """Test process create/update/delete."""

    def setup_method(self):
        self.store = DefinitionStore(processes=[Process(id=1, name="Chicken", duration_minutes=60)])

    def test_create_process(self):
        process = self.store.create_process("Honey", 45)

        assert process == Process(id=2, name="Honey", duration_minutes=45)
        assert len(self.store.processes) == 2

    @pytest.mark.parametrize("duration", [0, -5, 1.5, "60", True, None])
    def test_create_process_rejects_bad_duration(self, duration):
        """Durations must be positive integers."""
        with pytest.raises(InvalidInputError) as exc_info:
            self.store.create_process("Bad", duration)

        assert exc_info.value.field == "duration_minutes"
        assert len(self.store.processes) == 1

    def test_update_process(self):
        updated = self.store.update_process(1, "Chicken run", 90)

        assert updated.duration_minutes == 90
        assert updated.name == "Chicken run"
        assert self.store.get_process(1) == updated

    def test_update_process_rejects_bad_duration(self):
        with pytest.raises(InvalidInputError):
            self.store.update_process(1, "Chicken", 0)

        assert self.store.get_process(1).duration_minutes == 60

    def test_update_missing_process(self):
        with pytest.raises(NotFoundError):
            self.store.update_process(42, "Ghost", 10)

    def test_deleted_id_is_not_reused(self):
        """Ids stay monotonic after the highest record is deleted."""
        created = self.store.create_process("Honey", 45)
        self.store.delete_process(created.id)

        assert self.store.create_process("Mine", 90).id == created.id + 1

    def test_delete_process_is_idempotent(self):
        assert self.store.delete_process(1) is True
        assert self.store.delete_process(1) is False


class TestReplaceAll:
    """Test swapping in a loaded catalog."""

    def test_replace_all(self):
        store = DefinitionStore()
        store.replace_all(
            [Plot(id=5, name="A")],
            [Process(id=10, name="P", duration_minutes=1)]
        )

        assert [plot.id for plot in store.plots] == [5]
        assert store.create_process("Q", 2).id == 11
        assert store.create_plot("B").id == 6
