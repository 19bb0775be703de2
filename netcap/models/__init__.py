# Data models package

from netcap.models.capture import (
    AccessPoint,
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
    SessionProgress,
    SizeEstimate,
    StartResult,
    ValidationResult,
    format_file_size,
    CAPTURE_INVALID_CONFIG,
    CAPTURE_NOT_FOUND,
    REMOTE_AUTH_FAILED,
    REMOTE_NOT_AVAILABLE,
    REMOTE_REQUEST_FAILED,
    REMOTE_UNREACHABLE,
    MAX_CAPTURE_DURATION,
    MAX_TRUNCATION_BYTES,
    MIN_CAPTURE_DURATION,
    MIN_TRUNCATION_BYTES,
)

__all__ = [
    # Capture models
    "AccessPoint",
    "AddressFilter",
    "CaptureConfig",
    "CaptureDestination",
    "CaptureDirection",
    "CaptureError",
    "CaptureFile",
    "CaptureLocation",
    "CaptureProtocol",
    "CaptureSession",
    "CaptureStatus",
    "CaptureValidationError",
    "FilterType",
    "RemoteRequestError",
    "ScpConfig",
    "SessionProgress",
    "SizeEstimate",
    "StartResult",
    "ValidationResult",
    "format_file_size",
    # Error codes
    "CAPTURE_INVALID_CONFIG",
    "CAPTURE_NOT_FOUND",
    "REMOTE_AUTH_FAILED",
    "REMOTE_NOT_AVAILABLE",
    "REMOTE_REQUEST_FAILED",
    "REMOTE_UNREACHABLE",
    # Limits
    "MAX_CAPTURE_DURATION",
    "MAX_TRUNCATION_BYTES",
    "MIN_CAPTURE_DURATION",
    "MIN_TRUNCATION_BYTES",
]
