"""Packet capture operations on the controller REST API.

Maps the logical capture operations (start, stop, list, download, delete)
onto controller paths. Controllers expose the capture API under one of
several endpoint families; they are tried in order, a 404 moves on to the
next family, and the first family that answers is remembered.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from netcap.models.capture import RemoteRequestError, REMOTE_NOT_AVAILABLE
from netcap.services.controller_client import ControllerClient

logger = logging.getLogger(__name__)

ENDPOINT_FAMILIES = ('/v1/packetcapture', '/v1/pcap', '/v1/capture')
# The legacy family addresses files by name rather than by id
FILENAME_ADDRESSED_FAMILIES = ('/v1/capture',)
ACCESS_POINT_PATHS = ('/v1/accesspoints', '/v1/aps')

START_TIMEOUT_SECONDS = 30.0
DOWNLOAD_TIMEOUT_SECONDS = 30.0


def unwrap_list(data: Any, *keys: str) -> list[Any]:
    """Return the list carried by a controller response.

    Responses are either a bare JSON array or an object wrapping the array
    under one of the given keys.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


class PacketCaptureApi:
    """Logical packet capture operations on top of ControllerClient."""

    def __init__(self, client: ControllerClient):
        self._client = client
        self._family: str | None = None
        self._family_lock = threading.Lock()

    @property
    def resolved_family(self) -> str | None:
        """Endpoint family that last answered, if any."""
        with self._family_lock:
            return self._family

    def close(self) -> None:
        """Release the controller connection pool."""
        self._client.close()

    def _families(self) -> list[str]:
        with self._family_lock:
            resolved = self._family
        if resolved is None:
            return list(ENDPOINT_FAMILIES)
        return [resolved] + [f for f in ENDPOINT_FAMILIES if f != resolved]

    def _call(
        self,
        operation: str,
        build: Callable[[str], tuple[str, str]],
        **kwargs: Any,
    ) -> Any:
        """Run an operation against each endpoint family until one answers.

        Args:
            operation: Operation name for logs and errors
            build: Returns (method, path) for a family prefix
            **kwargs: Passed to ControllerClient.request

        Raises:
            RemoteRequestError: Non-404 failure, or every family answered 404
        """
        for family in self._families():
            method, path = build(family)
            try:
                result = self._client.request(method, path, **kwargs)
            except RemoteRequestError as e:
                if e.is_not_found:
                    logger.debug(f'Endpoint not found, trying next family (operation={operation}, path={path})')
                    continue
                raise

            with self._family_lock:
                if self._family != family:
                    logger.info(f'Packet capture endpoint family resolved (family={family})')
                self._family = family
            return result

        raise RemoteRequestError(
            code=REMOTE_NOT_AVAILABLE,
            message='Packet capture API not available on this controller',
            details={'operation': operation},
            status_code=404,
        )

    def start_capture(self, payload: dict[str, Any]) -> Any:
        """Submit a capture request; returns the controller response."""
        return self._call(
            'start',
            lambda family: ('POST', f'{family}/start'),
            json=payload,
            timeout=START_TIMEOUT_SECONDS,
        )

    def stop_capture(self, capture_id: str) -> Any:
        """Stop one capture by id."""
        return self._call(
            'stop',
            lambda family: ('POST', f'{family}/stop/{capture_id}'),
        )

    def stop_all_captures(self) -> Any:
        """Stop every running capture in a single call."""
        return self._call(
            'stop_all',
            lambda family: ('POST', f'{family}/stop'),
            json={'all': True},
        )

    def list_active_captures(self) -> list[Any]:
        """List remote session descriptors."""
        data = self._call('list_active', lambda family: ('GET', f'{family}/active'))
        return unwrap_list(data, 'captures', 'active', 'data')

    def list_capture_files(self) -> list[Any]:
        """List remote file descriptors."""
        data = self._call('list_files', lambda family: ('GET', f'{family}/files'))
        return unwrap_list(data, 'files', 'data')

    def _file_path(self, family: str, action: str, file_id: str, filename: str) -> str:
        key = filename if family in FILENAME_ADDRESSED_FAMILIES and filename else file_id
        return f'{family}/{action}/{key}'

    def download_capture_file(self, file_id: str, filename: str) -> bytes:
        """Fetch a capture file as bytes."""
        return self._call(
            'download',
            lambda family: ('GET', self._file_path(family, 'download', file_id, filename)),
            raw=True,
            timeout=DOWNLOAD_TIMEOUT_SECONDS,
        )

    def delete_capture_file(self, file_id: str, filename: str) -> None:
        """Delete a capture file."""
        self._call(
            'delete',
            lambda family: ('DELETE', self._file_path(family, 'delete', file_id, filename)),
        )

    def list_access_points(self) -> list[Any]:
        """List access points known to the controller."""
        last_error: RemoteRequestError | None = None
        for path in ACCESS_POINT_PATHS:
            try:
                data = self._client.get(path)
            except RemoteRequestError as e:
                if e.is_not_found:
                    last_error = e
                    continue
                raise
            return unwrap_list(data, 'accessPoints', 'aps', 'data')

        raise RemoteRequestError(
            code=REMOTE_NOT_AVAILABLE,
            message='Access point inventory not available on this controller',
            details={'paths': list(ACCESS_POINT_PATHS)},
            status_code=last_error.status_code if last_error else None,
        )
