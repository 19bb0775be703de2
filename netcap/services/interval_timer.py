"""Repeating interval timer for NETCAP background services.

A single daemon thread calls the callback every `interval` seconds until
stopped. Starting a running timer and stopping a stopped timer are no-ops,
and a tick can be requested out of cycle with trigger_now(). Stopping only
signals the thread unless the caller asks to wait for it.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from netcap.services.thread_manager import get_thread_manager

logger = logging.getLogger(__name__)


class IntervalTimer:
    """Non re-entrant repeating timer backed by one named thread."""

    def __init__(self, name: str, interval: float, callback: Callable[[], None]):
        """Initialize the timer.

        Args:
            name: Thread name (registered with ThreadManager)
            interval: Seconds between ticks
            callback: Function invoked on each tick
        """
        if interval <= 0:
            raise ValueError("Timer interval must be positive")

        self.name = name
        self.interval = interval
        self._callback = callback
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._retired: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()

    @property
    def is_running(self) -> bool:
        """Check if the timer thread is active."""
        with self._lock:
            return self._thread is not None

    def start(self) -> bool:
        """Start the timer.

        Returns:
            True if a thread was started, False if the timer was already running
        """
        with self._lock:
            if self._thread is not None:
                return False

            self._stop_event = threading.Event()
            self._wake_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(self._stop_event, self._wake_event),
                name=self.name,
                daemon=True,
            )
            self._thread = thread

        get_thread_manager().register_thread(self.name, thread)
        thread.start()
        logger.debug(f"Timer started (name={self.name}, interval={self.interval}s)")
        return True

    def stop(self, wait: bool = False) -> bool:
        """Stop the timer.

        The thread is signalled and returns after any in-flight callback.
        With wait=True the last stopped thread is also joined, unless called
        from that thread's own callback.

        Args:
            wait: Block until the timer thread has exited

        Returns:
            True if a running timer was stopped, False if it was already stopped
        """
        with self._lock:
            thread = self._thread
            if thread is not None:
                self._thread = None
                self._retired = thread
                self._stop_event.set()
                self._wake_event.set()
            retired = self._retired

        if thread is not None:
            get_thread_manager().unregister_thread(self.name, thread)
            logger.debug(f"Timer stopped (name={self.name})")

        if wait and retired is not None and retired is not threading.current_thread():
            retired.join(timeout=self.interval + 1)

        return thread is not None

    def trigger_now(self) -> bool:
        """Request an immediate out-of-cycle tick.

        Returns:
            True if the timer is running and was woken up
        """
        with self._lock:
            if self._thread is None:
                return False
            self._wake_event.set()
            return True

    def _run(self, stop_event: threading.Event, wake_event: threading.Event) -> None:
        """Timer loop."""
        while not stop_event.is_set():
            wake_event.wait(self.interval)
            wake_event.clear()
            if stop_event.is_set():
                break
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Timer callback failed (name={self.name}, error={str(e)})")
