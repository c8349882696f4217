"""Cancellable periodic tick source."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """Call a function every interval seconds on a background thread.

    A cancelled timer cannot be restarted; build a new one instead.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        """Initialize repeating timer.

        Args:
            interval: Seconds between calls
            callback: Function to call on each tick

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.callback = callback
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start ticking.

        Raises:
            RuntimeError: If the timer was already started or cancelled
        """
        if self._thread is not None or self._cancelled.is_set():
            raise RuntimeError("RepeatingTimer can only be started once")
        self._thread = threading.Thread(
            target=self._run, name="task-timer-tick", daemon=True
        )
        self._thread.start()

    def cancel(self) -> None:
        """Stop ticking. Safe to call more than once and from the callback.

        Does not wait for the thread; a callback already in progress
        finishes on its own. Use join() to wait for the thread to exit.
        """
        self._cancelled.set()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the timer thread to exit."""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _run(self) -> None:
        # wait() returns True as soon as cancel() is called
        while not self._cancelled.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Tick callback failed")

    @property
    def is_active(self) -> bool:
        """Check if the timer thread is running and not cancelled."""
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._cancelled.is_set()
        )
