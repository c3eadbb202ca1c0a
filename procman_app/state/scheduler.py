"""
Periodic re-evaluation task.

Runs a tick callback on a daemon thread at a fixed interval until it is
stopped. Stopping sets an event the loop waits on and joins the thread,
so no timer outlives ``stop()``.
"""

import threading
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class TickScheduler:
    """Cancellable fixed-interval ticker."""

    def __init__(
        self,
        callback: Callable[[], object],
        interval_seconds: float = 1.0,
        name: str = "procman-tick"
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.logger = logger
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._tick_count = 0
        self._error_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def error_count(self) -> int:
        return self._error_count

    def start(self) -> None:
        """Start ticking. A second call while running is a no-op."""
        if self.is_running:
            return

        # Fresh event per run so a loop stopped from its own thread stays stopped
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name=self.name, daemon=True
        )
        self._thread.start()

        self.logger.info("Tick scheduler started", interval_seconds=self.interval_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop ticking and wait for the thread to exit.

        Called from the tick thread itself (e.g. an alert hook tearing the
        tracker down), the loop exits after the current tick returns.
        """
        thread = self._thread
        if thread is None:
            return

        self._stop_event.set()
        if thread is threading.current_thread():
            self._thread = None
            self.logger.info("Tick scheduler stopped from tick thread", ticks=self._tick_count)
            return

        thread.join(timeout)
        if thread.is_alive():
            self.logger.warning("Tick thread did not exit before timeout", timeout=timeout)
        else:
            self._thread = None
            self.logger.info("Tick scheduler stopped", ticks=self._tick_count)

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.callback()
                self._tick_count += 1
            except Exception:
                # A failing tick must not kill the loop
                self._error_count += 1
                self.logger.exception("Tick callback failed")

            if stop_event.wait(self.interval_seconds):
                break
