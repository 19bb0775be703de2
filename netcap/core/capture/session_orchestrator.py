"""SessionOrchestrator module for NETCAP.

Owns the set of locally known capture sessions. Starts and stops sessions
through the controller, reconciles the local set with the controller's list
of active captures, and starts or stops the status poller as sessions come
and go.

Local records are a cache: every operator-triggered transition is applied
optimistically and reverted when the controller call fails, and refresh()
treats the controller's list as ground truth.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable

from netcap.core.capture.file_registry import CaptureFileRegistry, is_finite_number, parse_timestamp
from netcap.core.capture.size_estimator import estimate_capture_file_size
from netcap.core.capture.validation import validate_capture_config
from netcap.models.capture import (
    AccessPoint,
    CaptureConfig,
    CaptureDestination,
    CaptureError,
    CaptureLocation,
    CaptureSession,
    CaptureStatus,
    CaptureValidationError,
    FilterType,
    RemoteRequestError,
    StartResult,
    format_mac_address,
    CAPTURE_INVALID_CONFIG,
    CAPTURE_NOT_FOUND,
    DEFAULT_RADIO,
)
from netcap.services.capture_api import PacketCaptureApi

if TYPE_CHECKING:
    from netcap.core.capture.status_poller import StatusPoller

logger = logging.getLogger(__name__)


def build_start_payload(config: CaptureConfig, ap_id: str | None) -> dict[str, Any]:
    """Build the controller request body for a capture start.

    Location-specific fields are only included for the matching location,
    and at most the first MAC and the first IP filter are transmitted.

    Args:
        config: Validated capture configuration
        ap_id: Access point to capture on (WIRELESS only)

    Returns:
        Request payload in the controller's vocabulary
    """
    payload: dict[str, Any] = {
        'location': config.location.value,
        'direction': config.direction.value,
        'duration': config.duration_minutes * 60,
        'destination': config.destination.value,
    }

    if config.location == CaptureLocation.WIRED:
        payload['includeWiredClients'] = bool(config.include_wired_clients)

    if config.location == CaptureLocation.WIRELESS:
        payload['radio'] = config.radio or DEFAULT_RADIO
        if ap_id:
            payload['accessPoint'] = ap_id

    if config.truncation_bytes > 0:
        payload['truncatePackets'] = config.truncation_bytes

    if config.protocol is not None:
        payload['protocol'] = config.protocol.value

    if config.destination == CaptureDestination.SCP and config.scp_config is not None:
        payload['scp'] = config.scp_config.to_payload()

    filters = []
    seen_types = set()
    for address_filter in config.address_filters:
        if address_filter.type in seen_types:
            continue
        seen_types.add(address_filter.type)
        filters.append({
            'type': address_filter.type.value,
            'value': address_filter.normalized_value(),
        })
    payload['filters'] = filters

    return payload


def parse_access_point(data: Any) -> AccessPoint | None:
    """Normalize a remote access point descriptor (None if it has no serial)."""
    if not isinstance(data, dict):
        return None
    serial = data.get('serialNumber') or data.get('serial_number') or data.get('id')
    if not serial:
        return None
    return AccessPoint(
        serial_number=str(serial),
        name=data.get('displayName') or data.get('name') or data.get('apName'),
        status=data.get('status'),
    )


def _parse_remote_status(value: Any) -> CaptureStatus:
    """Map a remote status to CaptureStatus; anything unknown is RUNNING."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('completed', 'complete', 'finished', 'done'):
            return CaptureStatus.COMPLETED
    return CaptureStatus.RUNNING


class SessionOrchestrator:
    """Owner of the local capture session set."""

    def __init__(
        self,
        api: PacketCaptureApi,
        file_registry: CaptureFileRegistry,
        packets_per_second: int = 100,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            api: Packet capture API mapping
            file_registry: Registry refreshed after a session stops
            packets_per_second: Packet rate used for size estimates
            clock: Returns the current UTC time (injectable for tests)
        """
        self._api = api
        self._file_registry = file_registry
        self._packets_per_second = packets_per_second
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sessions: dict[str, CaptureSession] = {}
        self._access_points: list[AccessPoint] = []
        self._poller: StatusPoller | None = None
        # Bumped by every local change to the set; refresh results fetched
        # under an older generation are discarded
        self._generation = 0
        self._lock = threading.RLock()

    def attach_poller(self, poller: StatusPoller) -> None:
        """Attach the poller started and stopped with the session set."""
        self._poller = poller

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def get_sessions(self) -> list[CaptureSession]:
        """Return the local sessions, oldest first."""
        with self._lock:
            return sorted(self._sessions.values(), key=lambda s: s.start_time)

    def get_session(self, session_id: str) -> CaptureSession | None:
        """Return a local session by id."""
        with self._lock:
            return self._sessions.get(session_id)

    def has_sessions(self) -> bool:
        """Check if any session is tracked."""
        with self._lock:
            return bool(self._sessions)

    def get_access_points(self) -> list[AccessPoint]:
        """Return the locally known access points."""
        with self._lock:
            return list(self._access_points)

    def set_access_points(self, access_points: list[AccessPoint]) -> None:
        """Replace the locally known access points."""
        with self._lock:
            self._access_points = list(access_points)

    def refresh_access_points(self) -> list[AccessPoint]:
        """Reload access points from the controller.

        Failures are logged and the previous list is kept.

        Returns:
            Locally known access points after the refresh
        """
        try:
            descriptors = self._api.list_access_points()
        except RemoteRequestError as e:
            logger.warning(f'Failed to load access points (error={e.message})')
            return self.get_access_points()

        access_points = [ap for ap in map(parse_access_point, descriptors) if ap is not None]
        self.set_access_points(access_points)
        logger.info(f'Access points loaded (count={len(access_points)})')
        return list(access_points)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start(self, config: CaptureConfig) -> StartResult:
        """Start a remote capture.

        Args:
            config: Capture configuration

        Returns:
            StartResult with the new RUNNING session and operator notices

        Raises:
            CaptureValidationError: If the configuration is invalid (no remote call made)
            RemoteRequestError: If the controller rejects the request (no local change)
        """
        access_points = self.get_access_points()
        validation = validate_capture_config(config, len(access_points))
        if not validation.valid:
            logger.info(f'Capture config rejected (error={validation.error})')
            raise CaptureValidationError(
                code=validation.code or CAPTURE_INVALID_CONFIG,
                message=validation.error or 'Invalid capture configuration',
                details=validation.to_dict(),
            )

        notices: list[str] = []
        if validation.warning:
            notices.append(validation.warning)

        ap_id = None
        if config.location == CaptureLocation.WIRELESS:
            ap_id = config.ap_id
            if not ap_id:
                first = access_points[0]
                ap_id = first.serial_number
                notices.append(
                    f'No access point selected, using {first.name or first.serial_number}'
                )

        estimate = estimate_capture_file_size(
            config.duration_minutes,
            config.truncation_bytes,
            self._packets_per_second,
        )
        if estimate.warning:
            notices.append(estimate.warning)

        payload = build_start_payload(config, ap_id)
        logger.info(
            f'Starting capture '
            f'(location={payload["location"]}, direction={payload["direction"]}, '
            f'duration={payload["duration"]}s, filters={len(payload["filters"])})'
        )

        response = self._api.start_capture(payload)

        remote_id = response.get('id') if isinstance(response, dict) else None
        session_id = str(remote_id) if remote_id not in (None, '') else f'capture-{uuid.uuid4().hex[:12]}'

        session = CaptureSession(
            id=session_id,
            location=config.location.value,
            direction=config.direction.value,
            duration_seconds=config.duration_minutes * 60,
            start_time=self._clock(),
            filters=[f.to_label() for f in config.address_filters],
            status=CaptureStatus.RUNNING,
        )

        with self._lock:
            if session_id in self._sessions:
                logger.warning(f'Controller reused a tracked capture id (capture_id={session_id})')
            self._sessions[session_id] = session
            self._generation += 1

        logger.info(
            f'Capture started '
            f'(capture_id={session_id}, synthesized_id={remote_id in (None, "")})'
        )

        if self._poller is not None:
            self._poller.start()

        return StartResult(session=session, notices=notices)

    def stop_one(self, session_id: str) -> None:
        """Stop one capture.

        The session is marked STOPPING before the controller call, removed
        on success, and reverted to RUNNING on failure.

        Raises:
            CaptureError: If the session is not tracked locally
            RemoteRequestError: If the controller call fails (session back to RUNNING)
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise CaptureError(
                    code=CAPTURE_NOT_FOUND,
                    message=f'Capture {session_id} not found',
                    details={'capture_id': session_id},
                )
            session.status = CaptureStatus.STOPPING

        logger.info(f'Stopping capture (capture_id={session_id})')

        try:
            self._api.stop_capture(session_id)
        except CaptureError:
            with self._lock:
                current = self._sessions.get(session_id)
                if current is not None and current.status == CaptureStatus.STOPPING:
                    current.status = CaptureStatus.RUNNING
            logger.warning(f'Capture stop failed, reverted to running (capture_id={session_id})')
            raise

        with self._lock:
            self._sessions.pop(session_id, None)
            self._generation += 1
            empty = not self._sessions

        logger.info(f'Capture stopped (capture_id={session_id})')

        try:
            self._file_registry.list()
        except RemoteRequestError as e:
            logger.warning(f'File list refresh after stop failed (error={e.message})')

        if empty and self._poller is not None:
            self._poller.stop()

    def stop_all(self) -> int:
        """Stop every capture with one controller call.

        The call is treated as atomic: on failure nothing changes locally.

        Returns:
            Number of local sessions cleared

        Raises:
            RemoteRequestError: If the controller call fails
        """
        with self._lock:
            count = len(self._sessions)

        logger.info(f'Stopping all captures (count={count})')
        self._api.stop_all_captures()

        with self._lock:
            cleared = len(self._sessions)
            self._sessions.clear()
            self._generation += 1

        if self._poller is not None:
            self._poller.stop()

        logger.info(f'All captures stopped (cleared={cleared})')

        try:
            self._file_registry.list()
        except RemoteRequestError as e:
            logger.warning(f'File list refresh after stop-all failed (error={e.message})')

        return cleared

    def refresh(self) -> list[CaptureSession]:
        """Reconcile the local session set with the controller's active list.

        Sessions still reported keep their local start_time and filters,
        sessions no longer reported (or reported completed) are dropped, and
        new sessions are added with best-effort field mapping. Status is
        re-derived from the controller, so an optimistic STOPPING that is
        still reported active goes back to RUNNING.

        A list fetched before a concurrent start or stop completed is
        discarded and the current local set is returned unchanged. The
        poller runs whenever the resulting set is non-empty.

        Returns:
            Reconciled sessions

        Raises:
            RemoteRequestError: If the controller call fails (local set untouched)
        """
        with self._lock:
            generation = self._generation

        descriptors = self._api.list_active_captures()
        now = self._clock()

        with self._lock:
            if generation != self._generation:
                sessions = sorted(self._sessions.values(), key=lambda s: s.start_time)
                logger.debug(f'Stale refresh discarded (active={len(sessions)})')
                dropped = added = []
            else:
                previous = self._sessions
                reconciled: dict[str, CaptureSession] = {}
                for index, descriptor in enumerate(descriptors):
                    session = self._reconcile_one(descriptor, index, previous, now)
                    if session is not None and session.id not in reconciled:
                        reconciled[session.id] = session

                dropped = [sid for sid in previous if sid not in reconciled]
                added = [sid for sid in reconciled if sid not in previous]
                self._sessions = reconciled
                self._generation += 1
                sessions = sorted(reconciled.values(), key=lambda s: s.start_time)

        if dropped or added:
            logger.info(
                f'Sessions reconciled '
                f'(active={len(sessions)}, added={len(added)}, dropped={len(dropped)})'
            )

        if self._poller is not None:
            if sessions:
                self._poller.start()
            else:
                self._poller.stop()

        return sessions

    def _reconcile_one(
        self,
        descriptor: Any,
        index: int,
        previous: dict[str, CaptureSession],
        now: datetime,
    ) -> CaptureSession | None:
        """Merge one remote descriptor with the local record (None if completed)."""
        if not isinstance(descriptor, dict):
            descriptor = {}

        status = _parse_remote_status(descriptor.get('status'))
        if status == CaptureStatus.COMPLETED:
            return None

        remote_id = descriptor.get('id')
        session_id = str(remote_id) if remote_id not in (None, '') else f'capture-{index}'
        local = previous.get(session_id)

        duration = descriptor.get('duration')
        if not is_finite_number(duration) or duration < 0:
            duration = local.duration_seconds if local else 0

        location = descriptor.get('location') or descriptor.get('interface')
        direction = descriptor.get('direction')

        if local is not None:
            return CaptureSession(
                id=session_id,
                location=location or local.location,
                direction=direction or local.direction,
                duration_seconds=int(duration),
                start_time=local.start_time,
                filters=local.filters,
                status=status,
            )

        remote_filters = descriptor.get('filters')
        return CaptureSession(
            id=session_id,
            location=location or 'unknown',
            direction=direction or 'both',
            duration_seconds=int(duration),
            start_time=parse_timestamp(descriptor.get('startTime')) or now,
            filters=[_filter_label(f) for f in remote_filters] if isinstance(remote_filters, list) else [],
            status=status,
        )


def _filter_label(value: Any) -> str:
    """Display label for a remote filter entry."""
    if isinstance(value, dict) and 'type' in value:
        filter_type = str(value.get('type')).lower()
        if filter_type == FilterType.MAC.value:
            return f'{filter_type}:{format_mac_address(str(value.get("value", "")))}'
        return f'{filter_type}:{value.get("value", "")}'
    return str(value)
