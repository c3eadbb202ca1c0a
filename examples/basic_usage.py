#!/usr/bin/env python3
"""
Basic Usage Example - Procman Process Tracker

This script demonstrates the basic usage of the process tracker with a
manually driven clock. It shows how to:
- Initialize the tracker with in-memory storage
- Add plots and process definitions
- Start, evaluate and reset running instances
- Receive the one-time completion alert

Run: python examples/basic_usage.py
"""

from procman_app.config.loader import ConfigLoader
from procman_app.config.notification import NotificationConfig
from procman_app.engine import ProcessTracker
from procman_app.logging import configure_logging_from
from procman_app.persistence.state_store import MemoryKeyValueStore, PersistenceGateway
from procman_app.state.models import CompletionEvent
from procman_app.utils.time import ManualClock


def on_complete(event: CompletionEvent) -> None:
    print(f"*** ALERT: {event.process_name} finished on {event.plot_name} ***")


def print_board(tracker: ProcessTracker) -> None:
    for item in tracker.evaluate():
        row = tracker.describe(item)
        print(f"  #{row['id']:<3} {row['process']:<10} {row['plot']:<12} "
              f"{row['remaining']:>10}  ends {row['end']}  [{row['status']}]")


def main() -> None:
    config = ConfigLoader.create().load_config({"logging": {"level": "WARNING"}})
    configure_logging_from(config.logging)

    clock = ManualClock(start_millis=1_700_000_000_000)
    tracker = ProcessTracker(
        config=config,
        gateway=PersistenceGateway(MemoryKeyValueStore()),
        clock=clock,
        notification_config=NotificationConfig(destinations=[]),
        on_complete=on_complete,
    )

    with tracker:
        print(f"Seeded {len(tracker.plots)} plots and {len(tracker.processes)} processes")

        farm = tracker.create_plot("Farm", "Farm (60x)", plot_id=100).value
        chicken = tracker.create_process("Chicken run", 60).value
        honey = tracker.create_process("Honey", 45).value

        tracker.start_process(chicken.id, farm.id)
        honey_run = tracker.start_process(honey.id, farm.id).value

        rejected = tracker.start_process(999, farm.id)
        print(f"Starting unknown process: {rejected.status.value} ({rejected.error_msg})")

        print("\nAt start:")
        print_board(tracker)

        clock.advance(minutes=50)
        tracker.tick()
        print("\nAfter 50 minutes:")
        print_board(tracker)

        clock.advance(minutes=15)
        result = tracker.tick()
        print(f"\nAfter 65 minutes: {len(result.events)} completion(s)")
        print_board(tracker)

        # Already notified, nothing fires again
        clock.advance(minutes=1)
        print(f"Next tick fired {len(tracker.tick().events)} alert(s)")

        tracker.reset_process(honey_run.id)
        print("\nAfter resetting the honey run:")
        print_board(tracker)


if __name__ == "__main__":
    main()
