"""Unit tests for capture models."""

import pytest
from datetime import datetime, timedelta, timezone

from netcap.models.capture import (
    AddressFilter,
    CaptureConfig,
    CaptureDestination,
    CaptureDirection,
    CaptureError,
    CaptureFile,
    CaptureLocation,
    CaptureProtocol,
    CaptureSession,
    CaptureStatus,
    CaptureValidationError,
    FilterType,
    RemoteRequestError,
    ScpConfig,
    StartResult,
    ValidationResult,
    format_file_size,
    format_mac_address,
    normalize_mac_address,
    CAPTURE_INVALID_CONFIG,
    DEFAULT_CAPTURE_DURATION,
    REMOTE_REQUEST_FAILED,
)


START = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


class TestEnums:
    """Tests for capture enums."""

    def test_location_values(self):
        """Test the controller vocabulary for capture points."""
        assert CaptureLocation.APPLIANCE_PORT.value == "appliance"
        assert CaptureLocation.WIRED.value == "wired"
        assert CaptureLocation.WIRELESS.value == "wireless"

    def test_statuses_exist(self):
        """Test that all session statuses exist."""
        assert CaptureStatus.RUNNING.value == "running"
        assert CaptureStatus.STOPPING.value == "stopping"
        assert CaptureStatus.COMPLETED.value == "completed"


class TestCaptureError:
    """Tests for CaptureError and its subclasses."""

    def test_to_dict(self):
        """Test error serialization for JSON envelopes."""
        error = CaptureError(code="X", message="boom", details={"a": 1})
        assert error.to_dict() == {"code": "X", "message": "boom", "details": {"a": 1}}
        assert str(error) == "boom"

    def test_details_default_to_empty_dict(self):
        """Test that details default to an empty dict."""
        assert CaptureError(code="X", message="boom").details == {}

    def test_remote_error_is_not_found(self):
        """Test is_not_found reflects a 404 status."""
        assert RemoteRequestError(REMOTE_REQUEST_FAILED, "gone", status_code=404).is_not_found
        assert not RemoteRequestError(REMOTE_REQUEST_FAILED, "bad", status_code=500).is_not_found
        assert not RemoteRequestError(REMOTE_REQUEST_FAILED, "down").is_not_found

    def test_validation_error_is_capture_error(self):
        """Test that validation errors are caught as CaptureError."""
        assert issubclass(CaptureValidationError, CaptureError)


class TestCaptureConfigFromDict:
    """Tests for CaptureConfig.from_dict()."""

    def test_defaults(self):
        """Test defaults for an empty body."""
        config = CaptureConfig.from_dict({})
        assert config.location == CaptureLocation.WIRELESS
        assert config.direction == CaptureDirection.BOTH
        assert config.duration_minutes == DEFAULT_CAPTURE_DURATION
        assert config.truncation_bytes == 0
        assert config.protocol is None
        assert config.address_filters == []
        assert config.destination == CaptureDestination.FILE
        assert config.scp_config is None

    def test_snake_case_body(self):
        """Test a full snake_case body."""
        config = CaptureConfig.from_dict({
            "location": "wired",
            "include_wired_clients": True,
            "direction": "ingress",
            "duration_minutes": 5,
            "truncation_bytes": 128,
            "protocol": "udp",
            "address_filters": [{"type": "ip", "value": "10.0.0.1"}],
        })
        assert config.location == CaptureLocation.WIRED
        assert config.include_wired_clients is True
        assert config.direction == CaptureDirection.INGRESS
        assert config.duration_minutes == 5
        assert config.truncation_bytes == 128
        assert config.protocol == CaptureProtocol.UDP
        assert config.address_filters == [AddressFilter(FilterType.IP, "10.0.0.1")]

    def test_dashboard_aliases(self):
        """Test camelCase names used by the dashboard form."""
        config = CaptureConfig.from_dict({
            "captureLocation": "WIRELESS",
            "selectedAP": "AP-002",
            "selectedRadio": "radio1",
            "duration": 10,
            "truncatePackets": 64,
            "packetDestination": "scp",
            "scpConfig": {"serverIp": "192.168.1.5", "username": "u", "password": "p"},
        })
        assert config.location == CaptureLocation.WIRELESS
        assert config.ap_id == "AP-002"
        assert config.radio == "radio1"
        assert config.duration_minutes == 10
        assert config.truncation_bytes == 64
        assert config.destination == CaptureDestination.SCP
        assert config.scp_config.server_ip == "192.168.1.5"

    def test_all_access_point_means_unset(self):
        """Test that the 'all' selector leaves the access point unset."""
        assert CaptureConfig.from_dict({"selectedAP": "all"}).ap_id is None

    def test_enum_accepts_member_name(self):
        """Test enum parsing by member name."""
        config = CaptureConfig.from_dict({"location": "appliance_port"})
        assert config.location == CaptureLocation.APPLIANCE_PORT

    def test_unknown_enum_raises(self):
        """Test that an unknown enum value is rejected."""
        with pytest.raises(CaptureValidationError) as exc_info:
            CaptureConfig.from_dict({"direction": "sideways"})
        assert exc_info.value.code == CAPTURE_INVALID_CONFIG
        assert exc_info.value.details["field"] == "direction"

    def test_non_dict_body_raises(self):
        """Test that a non-object body is rejected."""
        with pytest.raises(CaptureValidationError):
            CaptureConfig.from_dict(["not", "a", "dict"])

    def test_filters_must_be_list(self):
        """Test that a non-list filters value is rejected."""
        with pytest.raises(CaptureValidationError):
            CaptureConfig.from_dict({"filters": "mac"})

    def test_range_values_not_checked(self):
        """Test that out-of-range values survive parsing for the validator."""
        assert CaptureConfig.from_dict({"duration_minutes": 0}).duration_minutes == 0


class TestAddressFilter:
    """Tests for AddressFilter."""

    def test_mac_label_is_canonical(self):
        """Test that MAC labels use the canonical form."""
        address_filter = AddressFilter(FilterType.MAC, "aa-bb-cc-dd-ee-ff")
        assert address_filter.to_label() == "mac:AA:BB:CC:DD:EE:FF"

    def test_mac_helpers_live_with_models(self):
        """Test MAC normalization available from the models module."""
        assert normalize_mac_address("aa:bb:cc:dd:ee:ff") == "AABBCCDDEEFF"
        assert format_mac_address("AABBCCDDEEFF") == "AA:BB:CC:DD:EE:FF"
        assert AddressFilter(FilterType.MAC, "aa-bb-cc-dd-ee-ff").normalized_value() == "AA:BB:CC:DD:EE:FF"

    def test_ip_label_trimmed(self):
        """Test that IP values are trimmed."""
        assert AddressFilter(FilterType.IP, " 10.0.0.1 ").to_label() == "ip:10.0.0.1"

    def test_missing_type_raises(self):
        """Test that a filter without type is rejected."""
        with pytest.raises(CaptureValidationError):
            AddressFilter.from_dict({"value": "10.0.0.1"})


class TestScpConfig:
    """Tests for ScpConfig."""

    def test_to_dict_masks_password(self):
        """Test that the password never appears in serialized output."""
        scp = ScpConfig("10.0.0.5", "backup", "secret")
        assert scp.to_dict()["password"] == "********"

    def test_payload_omits_blank_path(self):
        """Test that a blank path is not sent."""
        assert "path" not in ScpConfig("10.0.0.5", "u", "p", path="  ").to_payload()
        assert ScpConfig("10.0.0.5", "u", "p", path="/srv").to_payload()["path"] == "/srv"


class TestCaptureSessionProgress:
    """Tests for CaptureSession.progress()."""

    def test_progress_midway(self):
        """Test progress halfway through a one-minute capture."""
        session = CaptureSession(id="c1", location="wired", duration_seconds=60, start_time=START)
        progress = session.progress(START + timedelta(seconds=30))
        assert progress.elapsed_seconds == 30
        assert progress.remaining_seconds == 30
        assert progress.progress_percent == 50

    def test_progress_clamped(self):
        """Test that progress stays within bounds after the duration."""
        session = CaptureSession(id="c1", location="wired", duration_seconds=60, start_time=START)
        progress = session.progress(START + timedelta(seconds=90))
        assert progress.remaining_seconds == 0
        assert progress.progress_percent == 100

    def test_clock_before_start(self):
        """Test that a clock behind start_time yields zero elapsed."""
        session = CaptureSession(id="c1", location="wired", duration_seconds=60, start_time=START)
        assert session.progress(START - timedelta(seconds=5)).elapsed_seconds == 0

    def test_zero_duration(self):
        """Test that an unknown duration reports 0 percent."""
        session = CaptureSession(id="c1", location="wired", duration_seconds=0, start_time=START)
        progress = session.progress(START + timedelta(seconds=10))
        assert progress.progress_percent == 0
        assert progress.remaining_seconds == 0

    def test_to_dict(self):
        """Test session serialization."""
        session = CaptureSession(
            id="c1", location="wireless", duration_seconds=60,
            start_time=START, filters=["ip:10.0.0.1"],
        )
        result = session.to_dict()
        assert result["capture_id"] == "c1"
        assert result["status"] == "running"
        assert result["start_time"] == "2024-01-15T10:00:00+00:00"
        assert result["filters"] == ["ip:10.0.0.1"]


class TestSerialization:
    """Tests for result and file serialization."""

    def test_validation_result_omits_empty_fields(self):
        """Test that only set fields are serialized."""
        assert ValidationResult(True).to_dict() == {"valid": True}
        assert ValidationResult(False, "bad").to_dict() == {"valid": False, "error": "bad"}

    def test_capture_file_to_dict(self):
        """Test capture file serialization with display size."""
        capture_file = CaptureFile(id="f1", filename="a.pcap", size_bytes=2048, created_at=START)
        result = capture_file.to_dict()
        assert result["size_display"] == "2 KB"
        assert result["created_at"] == "2024-01-15T10:00:00+00:00"

    def test_start_result_to_dict(self):
        """Test start result serialization."""
        session = CaptureSession(id="c1", location="wired", start_time=START)
        result = StartResult(session=session, notices=["note"]).to_dict()
        assert result["session"]["capture_id"] == "c1"
        assert result["notices"] == ["note"]


class TestFormatFileSize:
    """Tests for format_file_size()."""

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5 MB"),
        (3 * 1024 ** 3, "3 GB"),
    ])
    def test_formats(self, size, expected):
        """Test human-readable sizes."""
        assert format_file_size(size) == expected
