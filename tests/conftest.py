"""Pytest configuration and shared fixtures."""

import pytest

from procman_app.config.defaults import get_default_config
from procman_app.config.notification import NotificationConfig
from procman_app.engine import ProcessTracker
from procman_app.models.records import ActiveProcess, Plot, Process
from procman_app.persistence.state_store import MemoryKeyValueStore, PersistenceGateway
from procman_app.state.dispatcher import NotificationDispatcher
from procman_app.store.active import ActiveInstanceTracker
from procman_app.store.definitions import DefinitionStore
from procman_app.utils.time import ManualClock


@pytest.fixture
def clock() -> ManualClock:
    """Manually driven clock starting at epoch zero."""
    return ManualClock(start_millis=0)


@pytest.fixture
def chicken() -> Process:
    return Process(id=1, name="Chicken", duration_minutes=60)


@pytest.fixture
def farm() -> Plot:
    return Plot(id=100, name="Farm", description="Farm (60x)")


@pytest.fixture
def definitions(chicken: Process, farm: Plot) -> DefinitionStore:
    """Catalog holding one process and one plot."""
    return DefinitionStore(plots=[farm], processes=[chicken])


@pytest.fixture
def active_tracker(definitions: DefinitionStore, clock: ManualClock) -> ActiveInstanceTracker:
    return ActiveInstanceTracker(definitions, clock)


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def gateway(kv_store: MemoryKeyValueStore) -> PersistenceGateway:
    return PersistenceGateway(kv_store)


@pytest.fixture
def alerts() -> list:
    """Collects completion events passed to the alert callback."""
    return []


@pytest.fixture
def tracker(tmp_path, gateway, clock, chicken, farm, alerts):
    """Initialized tracker seeded with Chicken and Farm, alerts captured in ``alerts``."""
    tracker = ProcessTracker(
        config=get_default_config(),
        config_dir=tmp_path,
        gateway=gateway,
        clock=clock,
        notification_config=NotificationConfig(destinations=[]),
        on_complete=alerts.append,
        seed_plots=[farm],
        seed_processes=[chicken],
    )
    tracker.init()
    yield tracker
    tracker.teardown()


@pytest.fixture
def sample_active() -> ActiveProcess:
    return ActiveProcess(id=7, process_id=1, plot_id=100, start_time_millis=1_000, notified=False)


@pytest.fixture
def silent_dispatcher() -> NotificationDispatcher:
    """Dispatcher with no notifiers."""
    return NotificationDispatcher(NotificationConfig(destinations=[]))
