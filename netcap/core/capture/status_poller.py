"""StatusPoller module for NETCAP.

Periodically refreshes the session set and the capture file list while the
dashboard is visible. Ticks that fall while the dashboard is hidden are
skipped, not queued; becoming visible again forces an immediate refresh.
"""

from __future__ import annotations

import logging
import threading

from netcap.core.capture.file_registry import CaptureFileRegistry
from netcap.core.capture.session_orchestrator import SessionOrchestrator
from netcap.models.capture import RemoteRequestError
from netcap.services.interval_timer import IntervalTimer

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 3.0
POLLER_THREAD_NAME = 'service-capture-poller'


class StatusPoller:
    """Visibility-gated polling loop over the orchestrator and file registry."""

    def __init__(
        self,
        orchestrator: SessionOrchestrator,
        file_registry: CaptureFileRegistry,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ):
        """Initialize the poller (not started).

        Args:
            orchestrator: Session owner refreshed on each tick
            file_registry: File list refreshed on each tick
            interval: Seconds between ticks
        """
        self._orchestrator = orchestrator
        self._file_registry = file_registry
        self._timer = IntervalTimer(POLLER_THREAD_NAME, interval, self.tick)
        self._visible = True
        self._visibility_lock = threading.Lock()
        self.skipped_ticks = 0

    @property
    def is_running(self) -> bool:
        """Check if the polling timer is active."""
        return self._timer.is_running

    @property
    def is_visible(self) -> bool:
        """Check if the dashboard is reported visible."""
        with self._visibility_lock:
            return self._visible

    @property
    def interval(self) -> float:
        """Seconds between ticks."""
        return self._timer.interval

    def start(self) -> None:
        """Start polling (no-op if already running)."""
        if self._timer.start():
            logger.info(f'Status polling started (interval={self._timer.interval}s)')

    def stop(self, wait: bool = False) -> None:
        """Stop polling (no-op if already stopped).

        Request handlers only signal the timer; shutdown waits for an
        in-flight poll to finish.
        """
        if self._timer.stop(wait=wait):
            logger.info('Status polling stopped')

    def set_visible(self, visible: bool) -> None:
        """Record dashboard visibility.

        On the hidden to visible edge an out-of-cycle tick is requested if
        polling is running.
        """
        with self._visibility_lock:
            was_visible = self._visible
            self._visible = bool(visible)

        if visible and not was_visible:
            logger.debug('Dashboard visible again, refreshing now')
            self._timer.trigger_now()
        elif was_visible and not visible:
            logger.debug('Dashboard hidden, polling paused')

    def tick(self) -> bool:
        """Run one polling cycle.

        Refresh failures are logged and swallowed so the next tick retries.

        Returns:
            True if the cycle ran, False if it was skipped because the dashboard is hidden
        """
        if not self.is_visible:
            self.skipped_ticks += 1
            return False

        try:
            self._orchestrator.refresh()
        except RemoteRequestError as e:
            logger.warning(f'Session refresh failed (code={e.code}, error={e.message})')

        try:
            self._file_registry.list()
        except RemoteRequestError as e:
            logger.warning(f'File list refresh failed (code={e.code}, error={e.message})')

        return True
