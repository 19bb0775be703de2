"""Capture data models for NETCAP.

Defines dataclasses and enums for capture configurations, sessions,
capture files and the results returned by validation and estimation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class CaptureLocation(Enum):
    """Capture point on the managed infrastructure."""

    APPLIANCE_PORT = "appliance"
    WIRED = "wired"
    WIRELESS = "wireless"


class CaptureDirection(Enum):
    """Traffic direction to capture."""

    BOTH = "both"
    INGRESS = "ingress"
    EGRESS = "egress"


class CaptureProtocol(Enum):
    """Optional protocol restriction."""

    TCP = "tcp"
    UDP = "udp"
    ICMP = "icmp"


class CaptureDestination(Enum):
    """Where the controller delivers captured packets."""

    FILE = "file"
    SCP = "scp"


class FilterType(Enum):
    """Address filter kinds honored by the controller."""

    MAC = "mac"
    IP = "ip"


class CaptureStatus(Enum):
    """Status of a capture session."""

    RUNNING = "running"
    STOPPING = "stopping"
    COMPLETED = "completed"


# Error code constants
CAPTURE_INVALID_CONFIG = "CAPTURE_INVALID_CONFIG"
CAPTURE_INVALID_DURATION = "CAPTURE_INVALID_DURATION"
CAPTURE_INVALID_TRUNCATION = "CAPTURE_INVALID_TRUNCATION"
CAPTURE_NO_ACCESS_POINTS = "CAPTURE_NO_ACCESS_POINTS"
CAPTURE_INVALID_SCP = "CAPTURE_INVALID_SCP"
CAPTURE_INVALID_FILTER = "CAPTURE_INVALID_FILTER"
CAPTURE_NOT_FOUND = "CAPTURE_NOT_FOUND"
REMOTE_REQUEST_FAILED = "REMOTE_REQUEST_FAILED"
REMOTE_UNREACHABLE = "REMOTE_UNREACHABLE"
REMOTE_AUTH_FAILED = "REMOTE_AUTH_FAILED"
REMOTE_NOT_AVAILABLE = "REMOTE_NOT_AVAILABLE"


# Validation constants
MIN_CAPTURE_DURATION = 1
MAX_CAPTURE_DURATION = 60
DEFAULT_CAPTURE_DURATION = 1
MIN_TRUNCATION_BYTES = 0
MAX_TRUNCATION_BYTES = 65535
SAFE_TRUNCATION_BYTES = 64
DEFAULT_RADIO = "all"

_MAC_SEPARATORS = re.compile(r"[:\-]")


def normalize_mac_address(mac: str) -> str:
    """Strip ':' and '-' separators and upper-case a MAC address."""
    return _MAC_SEPARATORS.sub("", mac.strip()).upper()


def format_mac_address(mac: str) -> str:
    """Format a MAC address as XX:XX:XX:XX:XX:XX.

    Args:
        mac: MAC address in any accepted form (colons, dashes or bare hex)

    Returns:
        Canonical upper-case form, or the input unchanged if it is empty
    """
    normalized = normalize_mac_address(mac)
    if not normalized:
        return mac
    return ":".join(normalized[i:i + 2] for i in range(0, len(normalized), 2))


class CaptureError(Exception):
    """Exception for capture-related errors.

    Attributes:
        code: Error code (e.g., 'CAPTURE_INVALID_FILTER')
        message: Human-readable error message
        details: Additional error details
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON error response."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class CaptureValidationError(CaptureError):
    """A capture configuration was rejected locally, before any remote call."""


class RemoteRequestError(CaptureError):
    """A call to the remote controller failed.

    Attributes:
        status_code: HTTP status returned by the controller (None on transport failure)
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        super().__init__(code=code, message=message, details=details)
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        """Check if the controller answered 404."""
        return self.status_code == 404


def _parse_enum(enum_cls: type[Enum], value: Any, field_name: str, default: Enum | None = None):
    """Parse an enum from its value or member name (case-insensitive)."""
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        for member in enum_cls:
            if member.value == lowered or member.name.lower() == lowered:
                return member
    raise CaptureValidationError(
        code=CAPTURE_INVALID_CONFIG,
        message=f"Invalid {field_name}: {value!r}",
        details={
            "field": field_name,
            "allowed": [member.value for member in enum_cls],
        },
    )


def _first_present(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first non-None value among keys."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


@dataclass
class AddressFilter:
    """MAC or IP address filter.

    Attributes:
        type: Filter type (MAC or IP)
        value: Address as entered by the operator
    """

    type: FilterType
    value: str

    def normalized_value(self) -> str:
        """Return the value in the form sent to the controller."""
        if self.type == FilterType.MAC:
            return format_mac_address(self.value)
        return self.value.strip()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"type": self.type.value, "value": self.value}

    def to_label(self) -> str:
        """Short display label, e.g. 'mac:AA:BB:CC:DD:EE:FF'."""
        return f"{self.type.value}:{self.normalized_value()}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AddressFilter:
        """Deserialize from a dictionary."""
        if not isinstance(data, dict):
            raise CaptureValidationError(
                code=CAPTURE_INVALID_CONFIG,
                message="Each filter must be an object with 'type' and 'value'",
            )
        filter_type = _parse_enum(FilterType, data.get("type"), "filter type")
        if filter_type is None:
            raise CaptureValidationError(
                code=CAPTURE_INVALID_CONFIG,
                message="Filter type is required",
                details={"field": "filter type"},
            )
        value = data.get("value")
        return cls(type=filter_type, value=value if isinstance(value, str) else "")


@dataclass
class ScpConfig:
    """SCP delivery target.

    Attributes:
        server_ip: SCP server address (IPv4 or IPv6)
        username: SCP account name
        password: SCP account password
        path: Optional destination directory on the server
    """

    server_ip: str
    username: str
    password: str
    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization (password masked)."""
        return {
            "server_ip": self.server_ip,
            "username": self.username,
            "password": "********" if self.password else "",
            "path": self.path,
        }

    def to_payload(self) -> dict[str, Any]:
        """Build the block submitted to the controller."""
        payload = {
            "serverIp": self.server_ip.strip(),
            "username": self.username,
            "password": self.password,
        }
        if self.path and self.path.strip():
            payload["path"] = self.path.strip()
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScpConfig:
        """Deserialize from a dictionary (snake_case or camelCase keys)."""
        return cls(
            server_ip=_first_present(data, "server_ip", "serverIp", default=""),
            username=_first_present(data, "username", default=""),
            password=_first_present(data, "password", default=""),
            path=data.get("path"),
        )


@dataclass
class CaptureConfig:
    """Configuration for a capture request.

    Attributes:
        location: Capture point
        ap_id: Access point serial number (WIRELESS only)
        radio: Radio selector (WIRELESS only, 'all' by default)
        include_wired_clients: Include wired clients (WIRED only)
        direction: Traffic direction
        duration_minutes: Capture duration in minutes (1-60)
        truncation_bytes: Snap length in bytes (0-65535, 0 = full packet)
        protocol: Optional protocol restriction
        address_filters: Ordered MAC/IP filters
        destination: FILE or SCP
        scp_config: SCP target, required when destination is SCP
    """

    location: CaptureLocation = CaptureLocation.WIRELESS
    ap_id: str | None = None
    radio: str | None = None
    include_wired_clients: bool = False
    direction: CaptureDirection = CaptureDirection.BOTH
    duration_minutes: int = DEFAULT_CAPTURE_DURATION
    truncation_bytes: int = 0
    protocol: CaptureProtocol | None = None
    address_filters: list[AddressFilter] = field(default_factory=list)
    destination: CaptureDestination = CaptureDestination.FILE
    scp_config: ScpConfig | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "location": self.location.value,
            "ap_id": self.ap_id,
            "radio": self.radio,
            "include_wired_clients": self.include_wired_clients,
            "direction": self.direction.value,
            "duration_minutes": self.duration_minutes,
            "truncation_bytes": self.truncation_bytes,
            "protocol": self.protocol.value if self.protocol else None,
            "address_filters": [f.to_dict() for f in self.address_filters],
            "destination": self.destination.value,
            "scp_config": self.scp_config.to_dict() if self.scp_config else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CaptureConfig:
        """Deserialize a dashboard request body.

        Accepts snake_case keys as well as the dashboard's camelCase names
        (captureLocation, selectedAP, truncatePackets, packetDestination...).
        Range checks are left to validate_capture_config().

        Raises:
            CaptureValidationError: If the body is malformed or an enum value is unknown
        """
        if not isinstance(data, dict):
            raise CaptureValidationError(
                code=CAPTURE_INVALID_CONFIG,
                message="Capture configuration must be a JSON object",
            )

        raw_filters = _first_present(data, "address_filters", "filters", default=[])
        if not isinstance(raw_filters, list):
            raise CaptureValidationError(
                code=CAPTURE_INVALID_CONFIG,
                message="Filters must be a list",
                details={"field": "address_filters"},
            )

        raw_scp = _first_present(data, "scp_config", "scpConfig")
        if raw_scp is not None and not isinstance(raw_scp, dict):
            raise CaptureValidationError(
                code=CAPTURE_INVALID_CONFIG,
                message="SCP configuration must be an object",
                details={"field": "scp_config"},
            )

        ap_id = _first_present(data, "ap_id", "apId", "selectedAP", "accessPoint")
        if ap_id == "all":
            ap_id = None

        return cls(
            location=_parse_enum(
                CaptureLocation,
                _first_present(data, "location", "captureLocation"),
                "location",
                CaptureLocation.WIRELESS,
            ),
            ap_id=ap_id,
            radio=_first_present(data, "radio", "selectedRadio"),
            include_wired_clients=bool(
                _first_present(data, "include_wired_clients", "includeWiredClients", default=False)
            ),
            direction=_parse_enum(
                CaptureDirection, data.get("direction"), "direction", CaptureDirection.BOTH
            ),
            duration_minutes=_first_present(
                data, "duration_minutes", "durationMinutes", "duration",
                default=DEFAULT_CAPTURE_DURATION,
            ),
            truncation_bytes=_first_present(
                data, "truncation_bytes", "truncationBytes", "truncatePackets", default=0
            ),
            protocol=_parse_enum(CaptureProtocol, data.get("protocol"), "protocol"),
            address_filters=[AddressFilter.from_dict(f) for f in raw_filters],
            destination=_parse_enum(
                CaptureDestination,
                _first_present(data, "destination", "packetDestination"),
                "destination",
                CaptureDestination.FILE,
            ),
            scp_config=ScpConfig.from_dict(raw_scp) if raw_scp else None,
        )


@dataclass
class SessionProgress:
    """Derived progress of a running capture.

    Attributes:
        elapsed_seconds: Seconds since the session started
        remaining_seconds: Seconds until the configured duration is reached
        progress_percent: Completion percentage (0-100)
    """

    elapsed_seconds: float
    remaining_seconds: float
    progress_percent: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "elapsed_seconds": round(self.elapsed_seconds, 1),
            "remaining_seconds": round(self.remaining_seconds, 1),
            "progress_percent": round(self.progress_percent, 1),
        }


@dataclass
class CaptureSession:
    """Locally tracked view of a remote capture session.

    Attributes:
        id: Identifier assigned by the controller (or synthesized locally)
        location: Capture point label, echoed for display
        direction: Direction label, echoed for display
        duration_seconds: Configured capture duration
        start_time: Wall-clock anchor for progress computation
        filters: Filter labels, echoed for display
        status: Current session status
    """

    id: str
    location: str
    direction: str = CaptureDirection.BOTH.value
    duration_seconds: int = 0
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    filters: list[str] = field(default_factory=list)
    status: CaptureStatus = CaptureStatus.RUNNING

    def progress(self, now: datetime | None = None) -> SessionProgress:
        """Compute progress relative to now.

        A session with an unknown duration reports 0 percent.
        """
        now = now or datetime.now(timezone.utc)
        elapsed = max(0.0, (now - self.start_time).total_seconds())
        if self.duration_seconds <= 0:
            return SessionProgress(elapsed, 0.0, 0.0)
        remaining = max(0.0, self.duration_seconds - elapsed)
        percent = min(100.0, 100.0 * elapsed / self.duration_seconds)
        return SessionProgress(elapsed, remaining, percent)

    @property
    def is_running(self) -> bool:
        """Check if capture is currently running."""
        return self.status == CaptureStatus.RUNNING

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "capture_id": self.id,
            "location": self.location,
            "direction": self.direction,
            "duration_seconds": self.duration_seconds,
            "start_time": self.start_time.isoformat(),
            "filters": list(self.filters),
            "status": self.status.value,
        }


@dataclass
class CaptureFile:
    """Capture artifact stored on the controller.

    Attributes:
        id: Controller file identifier
        filename: File name offered for download
        size_bytes: File size in bytes
        created_at: Creation timestamp
        status: Optional controller status (e.g. still finalizing)
    """

    id: str
    filename: str
    size_bytes: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "filename": self.filename,
            "size_bytes": self.size_bytes,
            "size_display": format_file_size(self.size_bytes),
            "created_at": self.created_at.isoformat(),
            "status": self.status,
        }


@dataclass
class AccessPoint:
    """Access point known to the controller."""

    serial_number: str
    name: str | None = None
    status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "serial_number": self.serial_number,
            "name": self.name,
            "status": self.status,
        }


@dataclass
class ValidationResult:
    """Outcome of a validation rule.

    A valid result may still carry a warning for the operator. A failed
    result from validate_capture_config() also names the rule that failed
    through an error code.
    """

    valid: bool
    error: str | None = None
    warning: str | None = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"valid": self.valid}
        if self.error:
            result["error"] = self.error
        if self.code:
            result["code"] = self.code
        if self.warning:
            result["warning"] = self.warning
        return result


@dataclass
class SizeEstimate:
    """Advisory capture size estimate."""

    estimated_size_mb: int
    warning: str | None = None
    severity: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "estimated_size_mb": self.estimated_size_mb,
            "warning": self.warning,
            "severity": self.severity,
        }


@dataclass
class StartResult:
    """Result of a successful start request.

    Attributes:
        session: The new RUNNING session
        notices: Operator notices (AP defaulting, truncation and size warnings)
    """

    session: CaptureSession
    notices: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "session": self.session.to_dict(),
            "notices": list(self.notices),
        }


def format_file_size(size_bytes: int) -> str:
    """Format a byte count for display (e.g. '1.5 MB')."""
    if size_bytes <= 0:
        return "0 B"
    units = ("B", "KB", "MB", "GB")
    value = float(size_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"
