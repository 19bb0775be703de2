# Packet capture session management

from netcap.core.capture.validation import (
    format_mac_address,
    normalize_mac_address,
    validate_capture_config,
    validate_capture_duration,
    validate_ip_address,
    validate_ipv4_address,
    validate_ipv6_address,
    validate_mac_address,
    validate_scp_config,
    validate_truncation_size,
)
from netcap.core.capture.size_estimator import estimate_capture_file_size
from netcap.core.capture.file_registry import (
    CaptureFileRegistry,
    normalize_capture_file,
    parse_timestamp,
)
from netcap.core.capture.session_orchestrator import (
    SessionOrchestrator,
    build_start_payload,
)
from netcap.core.capture.status_poller import StatusPoller
from netcap.core.capture.capture_manager import PacketCaptureManager

__all__ = [
    # Validation
    "format_mac_address",
    "normalize_mac_address",
    "validate_capture_config",
    "validate_capture_duration",
    "validate_ip_address",
    "validate_ipv4_address",
    "validate_ipv6_address",
    "validate_mac_address",
    "validate_scp_config",
    "validate_truncation_size",
    # Size estimation
    "estimate_capture_file_size",
    # File registry
    "CaptureFileRegistry",
    "normalize_capture_file",
    "parse_timestamp",
    # Sessions
    "SessionOrchestrator",
    "build_start_payload",
    "StatusPoller",
    "PacketCaptureManager",
]
