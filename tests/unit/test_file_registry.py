"""Unit tests for CaptureFileRegistry."""

import pytest
from datetime import datetime, timezone

from netcap.core.capture.file_registry import (
    CaptureFileRegistry,
    normalize_capture_file,
    parse_timestamp,
)
from netcap.models.capture import RemoteRequestError, REMOTE_REQUEST_FAILED


FETCHED_AT = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


class TestParseTimestamp:
    """Tests for parse_timestamp()."""

    def test_epoch_milliseconds(self):
        """Test epoch milliseconds."""
        assert parse_timestamp(1705312800000) == FETCHED_AT

    def test_epoch_seconds(self):
        """Test epoch seconds."""
        assert parse_timestamp(1705312800) == FETCHED_AT

    def test_digit_string(self):
        """Test epoch values sent as strings."""
        assert parse_timestamp("1705312800000") == FETCHED_AT

    def test_iso_with_z(self):
        """Test ISO 8601 with a Z suffix."""
        assert parse_timestamp("2024-01-15T10:00:00Z") == FETCHED_AT

    def test_naive_iso_is_utc(self):
        """Test that naive ISO strings are read as UTC."""
        assert parse_timestamp("2024-01-15T10:00:00") == FETCHED_AT

    @pytest.mark.parametrize("value", [None, "", "yesterday", True, {"a": 1}])
    def test_unparseable(self, value):
        """Test values that cannot be parsed."""
        assert parse_timestamp(value) is None


class TestNormalizeCaptureFile:
    """Tests for normalize_capture_file()."""

    def test_full_descriptor(self):
        """Test a descriptor with every field present."""
        capture_file = normalize_capture_file(
            {"id": 42, "filename": "lobby.pcap", "size": 2048, "createdAt": "2024-01-14T08:00:00Z"},
            0,
            FETCHED_AT,
        )
        assert capture_file.id == "42"
        assert capture_file.filename == "lobby.pcap"
        assert capture_file.size_bytes == 2048
        assert capture_file.created_at == datetime(2024, 1, 14, 8, 0, 0, tzinfo=timezone.utc)

    def test_alternative_names(self):
        """Test name/sizeBytes/timestamp aliases."""
        capture_file = normalize_capture_file(
            {"id": "f", "name": "x.pcap", "sizeBytes": 10, "timestamp": 1705312800000},
            0,
            FETCHED_AT,
        )
        assert capture_file.filename == "x.pcap"
        assert capture_file.size_bytes == 10
        assert capture_file.created_at == FETCHED_AT

    def test_missing_fields_defaulted(self):
        """Test deterministic defaults for an empty descriptor."""
        capture_file = normalize_capture_file({}, 3, FETCHED_AT)
        assert capture_file.id == "file-3"
        assert capture_file.filename == "capture-3.pcap"
        assert capture_file.size_bytes == 0
        assert capture_file.created_at == FETCHED_AT
        assert capture_file.status is None

    def test_non_dict_descriptor(self):
        """Test that junk entries are normalized, not rejected."""
        assert normalize_capture_file("junk", 1, FETCHED_AT).id == "file-1"

    def test_negative_size_clamped(self):
        """Test that invalid sizes become zero."""
        assert normalize_capture_file({"size": -4}, 0, FETCHED_AT).size_bytes == 0

    @pytest.mark.parametrize("size", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_size_clamped(self, size):
        """Test that Infinity and NaN sizes become zero."""
        assert normalize_capture_file({"size": size}, 0, FETCHED_AT).size_bytes == 0

    def test_large_integer_size_kept(self):
        """Test that integers beyond float range are kept exactly."""
        assert normalize_capture_file({"size": 10 ** 400}, 0, FETCHED_AT).size_bytes == 10 ** 400

    def test_infinite_timestamp_falls_back(self):
        """Test that an Infinity timestamp uses the fetch time."""
        assert normalize_capture_file({"timestamp": float("inf")}, 0, FETCHED_AT).created_at == FETCHED_AT


class TestCaptureFileRegistry:
    """Tests for CaptureFileRegistry operations."""

    def _registry(self, mock_api):
        return CaptureFileRegistry(mock_api, clock=lambda: FETCHED_AT)

    def test_list_replaces_local_files(self, mock_api):
        """Test that list() stores the normalized files."""
        mock_api.list_capture_files.return_value = [{"id": "a"}, {"id": "b"}]
        registry = self._registry(mock_api)

        files = registry.list()

        assert [f.id for f in files] == ["a", "b"]
        assert [f.id for f in registry.get_files()] == ["a", "b"]
        assert registry.get_file("b").filename == "capture-1.pcap"

    def test_list_failure_keeps_local_files(self, mock_api):
        """Test that a failed list leaves the previous list."""
        mock_api.list_capture_files.return_value = [{"id": "a"}]
        registry = self._registry(mock_api)
        registry.list()

        mock_api.list_capture_files.side_effect = RemoteRequestError(REMOTE_REQUEST_FAILED, "down")
        with pytest.raises(RemoteRequestError):
            registry.list()

        assert [f.id for f in registry.get_files()] == ["a"]

    def test_download_returns_bytes(self, mock_api):
        """Test download passes id and filename through."""
        mock_api.download_capture_file.return_value = b"\xd4\xc3\xb2\xa1"
        registry = self._registry(mock_api)

        assert registry.download("a", "a.pcap") == b"\xd4\xc3\xb2\xa1"
        mock_api.download_capture_file.assert_called_once_with("a", "a.pcap")

    def test_delete_removes_local_entry(self, mock_api):
        """Test that a successful delete updates the local list."""
        mock_api.list_capture_files.return_value = [{"id": "a"}, {"id": "b"}]
        registry = self._registry(mock_api)
        registry.list()

        registry.delete("a", "capture-0.pcap")

        assert [f.id for f in registry.get_files()] == ["b"]

    def test_failed_delete_keeps_local_entry(self, mock_api):
        """Test that a failed delete leaves the list unchanged."""
        mock_api.list_capture_files.return_value = [{"id": "a"}]
        mock_api.delete_capture_file.side_effect = RemoteRequestError(REMOTE_REQUEST_FAILED, "locked")
        registry = self._registry(mock_api)
        registry.list()

        with pytest.raises(RemoteRequestError):
            registry.delete("a", "capture-0.pcap")

        assert [f.id for f in registry.get_files()] == ["a"]
