"""PacketCaptureManager module for NETCAP.

One manager per dashboard instance. It wires the session orchestrator, the
capture file registry, the status poller and the progress ticker together,
and is the only object the API layer talks to. shutdown() clears both
timers and releases the controller connection.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable

from netcap.core.capture.file_registry import CaptureFileRegistry
from netcap.core.capture.session_orchestrator import SessionOrchestrator
from netcap.core.capture.size_estimator import (
    DEFAULT_PACKETS_PER_SECOND,
    estimate_capture_file_size,
)
from netcap.core.capture.status_poller import DEFAULT_POLL_INTERVAL_SECONDS, StatusPoller
from netcap.core.capture.validation import validate_capture_config
from netcap.models.capture import (
    AccessPoint,
    CaptureConfig,
    CaptureFile,
    CaptureSession,
    SessionProgress,
    SizeEstimate,
    StartResult,
    ValidationResult,
)
from netcap.services.capture_api import PacketCaptureApi
from netcap.services.interval_timer import IntervalTimer

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_INTERVAL_SECONDS = 1.0
PROGRESS_THREAD_NAME = 'service-capture-progress'


class PacketCaptureManager:
    """Facade over the packet capture components.

    Holds exactly the session set (through the orchestrator), the file list
    (through the registry), the polling timer and the progress-redraw timer.
    """

    def __init__(
        self,
        api: PacketCaptureApi,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL_SECONDS,
        packets_per_second: int = DEFAULT_PACKETS_PER_SECOND,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the manager and its components.

        Args:
            api: Packet capture API mapping
            poll_interval: Seconds between status polls
            progress_interval: Seconds between progress recomputations
            packets_per_second: Packet rate used for size estimates
            clock: Returns the current UTC time (injectable for tests)
        """
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._api = api
        self._packets_per_second = packets_per_second

        self.file_registry = CaptureFileRegistry(api, clock=self._clock)
        self.orchestrator = SessionOrchestrator(
            api,
            self.file_registry,
            packets_per_second=packets_per_second,
            clock=self._clock,
        )
        self.poller = StatusPoller(self.orchestrator, self.file_registry, interval=poll_interval)
        self.orchestrator.attach_poller(self.poller)

        self._progress: dict[str, SessionProgress] = {}
        self._progress_lock = threading.Lock()
        self._progress_timer = IntervalTimer(
            PROGRESS_THREAD_NAME, progress_interval, self.update_progress
        )

        logger.info(
            f'PacketCaptureManager initialized '
            f'(poll_interval={poll_interval}s, progress_interval={progress_interval}s)'
        )

    # ------------------------------------------------------------------
    # Pre-flight
    # ------------------------------------------------------------------

    def validate(self, config: CaptureConfig) -> ValidationResult:
        """Validate a configuration against the locally known access points."""
        return validate_capture_config(config, len(self.orchestrator.get_access_points()))

    def estimate(
        self,
        duration_minutes: int,
        truncation_bytes: int,
        packets_per_second: int | None = None,
    ) -> SizeEstimate:
        """Estimate the capture file size."""
        return estimate_capture_file_size(
            duration_minutes,
            truncation_bytes,
            packets_per_second or self._packets_per_second,
        )

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def start_capture(self, config: CaptureConfig) -> StartResult:
        """Start a capture and the progress ticker."""
        result = self.orchestrator.start(config)
        self.update_progress()
        self._progress_timer.start()
        return result

    def stop_capture(self, session_id: str) -> None:
        """Stop one capture."""
        self.orchestrator.stop_one(session_id)
        self.update_progress()

    def stop_all_captures(self) -> int:
        """Stop every capture."""
        cleared = self.orchestrator.stop_all()
        self.update_progress()
        return cleared

    def refresh(self) -> list[CaptureSession]:
        """Reconcile sessions with the controller now."""
        sessions = self.orchestrator.refresh()
        self.update_progress()
        if sessions:
            self.poller.start()
            self._progress_timer.start()
        return sessions

    def get_active_captures(self) -> list[dict[str, Any]]:
        """Return sessions with their latest progress snapshot."""
        with self._progress_lock:
            snapshot = dict(self._progress)

        now = self._clock()
        captures = []
        for session in self.orchestrator.get_sessions():
            progress = snapshot.get(session.id) or session.progress(now)
            entry = session.to_dict()
            entry['progress'] = progress.to_dict()
            captures.append(entry)
        return captures

    def update_progress(self) -> None:
        """Recompute progress for every session.

        Called by the progress ticker; the ticker stops itself once no
        session remains.
        """
        now = self._clock()
        sessions = self.orchestrator.get_sessions()
        progress = {session.id: session.progress(now) for session in sessions}

        with self._progress_lock:
            self._progress = progress

        if not sessions:
            self._progress_timer.stop()

    @property
    def progress_ticker_running(self) -> bool:
        """Check if the progress-redraw timer is active."""
        return self._progress_timer.is_running

    # ------------------------------------------------------------------
    # Files and access points
    # ------------------------------------------------------------------

    def list_files(self) -> list[CaptureFile]:
        """Fetch the capture file list from the controller."""
        return self.file_registry.list()

    def get_files(self) -> list[CaptureFile]:
        """Return the locally known capture files."""
        return self.file_registry.get_files()

    def download_file(self, file_id: str, filename: str) -> bytes:
        """Download a capture file."""
        return self.file_registry.download(file_id, filename)

    def delete_file(self, file_id: str, filename: str) -> None:
        """Delete a capture file."""
        self.file_registry.delete(file_id, filename)

    def get_access_points(self) -> list[AccessPoint]:
        """Return the locally known access points."""
        return self.orchestrator.get_access_points()

    def refresh_access_points(self) -> list[AccessPoint]:
        """Reload access points from the controller."""
        return self.orchestrator.refresh_access_points()

    # ------------------------------------------------------------------
    # Visibility and teardown
    # ------------------------------------------------------------------

    def set_visible(self, visible: bool) -> None:
        """Forward dashboard visibility to the poller."""
        self.poller.set_visible(visible)

    def shutdown(self) -> None:
        """Stop both timers and close the controller connection."""
        self.poller.stop(wait=True)
        self._progress_timer.stop(wait=True)
        self._api.close()
        logger.info('PacketCaptureManager shut down')
