"""CaptureFileRegistry module for NETCAP.

Owns the local list of capture files produced by completed sessions and
performs list, download and delete calls against the controller. Remote
descriptors arrive with loosely named fields; they are normalized here so the
rest of the code always sees one CaptureFile schema.
"""

from __future__ import annotations

import logging
import math
import threading
from datetime import datetime, timezone
from typing import Any, Callable

from netcap.models.capture import CaptureFile
from netcap.services.capture_api import PacketCaptureApi

logger = logging.getLogger(__name__)


def is_finite_number(value: Any) -> bool:
    """Check for a real int or float that is neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a controller timestamp.

    Accepts epoch milliseconds, epoch seconds and ISO 8601 strings.

    Returns:
        Timezone-aware datetime, or None if the value cannot be parsed
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        # Values this large are epoch milliseconds
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.isdigit():
            return parse_timestamp(int(text))
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


def normalize_capture_file(data: Any, index: int, fetched_at: datetime) -> CaptureFile:
    """Normalize one remote file descriptor.

    Missing fields are defaulted deterministically: id 'file-<index>',
    filename 'capture-<index>.pcap', size 0, creation time = fetch time.

    Args:
        data: Remote descriptor (non-dict values are treated as empty)
        index: Position in the remote list
        fetched_at: Time the list was fetched

    Returns:
        CaptureFile
    """
    if not isinstance(data, dict):
        data = {}

    file_id = data.get('id')
    filename = data.get('filename') or data.get('name')
    size = data.get('size', data.get('sizeBytes'))
    created_at = None
    for key in ('date', 'created', 'createdAt', 'timestamp'):
        created_at = parse_timestamp(data.get(key))
        if created_at is not None:
            break

    status = data.get('status')

    return CaptureFile(
        id=str(file_id) if file_id not in (None, '') else f'file-{index}',
        filename=str(filename) if filename else f'capture-{index}.pcap',
        size_bytes=int(size) if is_finite_number(size) and size > 0 else 0,
        created_at=created_at or fetched_at,
        status=str(status) if status else None,
    )


class CaptureFileRegistry:
    """Local registry of capture files stored on the controller."""

    def __init__(
        self,
        api: PacketCaptureApi,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the registry.

        Args:
            api: Packet capture API mapping
            clock: Returns the current UTC time (injectable for tests)
        """
        self._api = api
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._files: list[CaptureFile] = []
        self._lock = threading.RLock()

    def list(self) -> list[CaptureFile]:
        """Fetch and normalize the remote file list.

        Replaces the local list on success.

        Returns:
            Normalized capture files

        Raises:
            RemoteRequestError: If the controller call fails (local list untouched)
        """
        descriptors = self._api.list_capture_files()
        fetched_at = self._clock()
        files = [
            normalize_capture_file(item, index, fetched_at)
            for index, item in enumerate(descriptors)
        ]

        with self._lock:
            self._files = files

        logger.debug(f'Capture files listed (count={len(files)})')
        return list(files)

    def get_files(self) -> list[CaptureFile]:
        """Return the locally known capture files."""
        with self._lock:
            return list(self._files)

    def get_file(self, file_id: str) -> CaptureFile | None:
        """Find a locally known capture file by id."""
        with self._lock:
            return next((f for f in self._files if f.id == file_id), None)

    def download(self, file_id: str, filename: str) -> bytes:
        """Fetch a capture file from the controller.

        Args:
            file_id: Controller file identifier
            filename: File name (used by filename-addressed endpoints)

        Returns:
            File content

        Raises:
            RemoteRequestError: If the download fails
        """
        logger.info(f'Downloading capture file (file_id={file_id}, filename={filename})')
        content = self._api.download_capture_file(file_id, filename)
        logger.info(f'Capture file downloaded (file_id={file_id}, size={len(content)})')
        return content

    def delete(self, file_id: str, filename: str) -> None:
        """Delete a capture file on the controller, then locally.

        Raises:
            RemoteRequestError: If the deletion fails (local list untouched)
        """
        logger.info(f'Deleting capture file (file_id={file_id}, filename={filename})')
        self._api.delete_capture_file(file_id, filename)

        with self._lock:
            self._files = [f for f in self._files if f.id != file_id]

        logger.info(f'Capture file deleted (file_id={file_id})')
