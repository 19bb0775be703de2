"""Capture configuration validation for NETCAP.

Pure functions checking a proposed capture configuration before anything is
sent to the controller. Every function returns a ValidationResult and never
raises, whatever the input.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any

from netcap.models.capture import (
    CaptureConfig,
    CaptureDestination,
    CaptureLocation,
    FilterType,
    ScpConfig,
    ValidationResult,
    format_mac_address,
    normalize_mac_address,
    CAPTURE_INVALID_DURATION,
    CAPTURE_INVALID_FILTER,
    CAPTURE_INVALID_SCP,
    CAPTURE_INVALID_TRUNCATION,
    CAPTURE_NO_ACCESS_POINTS,
    MAX_CAPTURE_DURATION,
    MAX_TRUNCATION_BYTES,
    MIN_CAPTURE_DURATION,
    MIN_TRUNCATION_BYTES,
    SAFE_TRUNCATION_BYTES,
)

logger = logging.getLogger(__name__)

_MAC_HEX = re.compile(r"^[0-9A-F]{12}$")
_IPV4_PATTERN = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")
# Best-effort syntactic check: 2-8 colon-separated groups of 0-4 hex digits
_IPV6_PATTERN = re.compile(r"^([0-9a-fA-F]{0,4}:){1,7}[0-9a-fA-F]{0,4}$")
_SCP_PATH_FORBIDDEN = re.compile(r'[<>"|?*]')


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_mac_address(mac: Any) -> ValidationResult:
    """Validate a MAC address.

    Accepts AA:BB:CC:DD:EE:FF, AA-BB-CC-DD-EE-FF and AABBCCDDEEFF,
    case-insensitively.
    """
    if not mac or not isinstance(mac, str):
        return ValidationResult(False, "MAC address is required")

    normalized = normalize_mac_address(mac)
    if len(normalized) != 12:
        return ValidationResult(False, "MAC address must be 12 hexadecimal characters")
    if not _MAC_HEX.match(normalized):
        return ValidationResult(
            False, "MAC address must contain only hexadecimal characters (0-9, A-F)"
        )
    return ValidationResult(True)


def validate_ipv4_address(ip: Any) -> ValidationResult:
    """Validate a dotted-quad IPv4 address."""
    if not ip or not isinstance(ip, str):
        return ValidationResult(False, "IP address is required")

    match = _IPV4_PATTERN.match(ip.strip())
    if not match:
        return ValidationResult(False, "Invalid IPv4 address format (expected: X.X.X.X)")

    if any(int(octet) > 255 for octet in match.groups()):
        return ValidationResult(False, "Each IPv4 octet must be between 0 and 255")
    return ValidationResult(True)


def validate_ipv6_address(ip: Any) -> ValidationResult:
    """Validate an IPv6 address (syntactic check, '::' compression allowed)."""
    if not ip or not isinstance(ip, str):
        return ValidationResult(False, "IP address is required")

    trimmed = ip.strip()
    if not _IPV6_PATTERN.match(trimmed):
        return ValidationResult(False, "Invalid IPv6 address format")
    if len(trimmed.split(":")) > 8:
        return ValidationResult(False, "IPv6 address has too many segments")
    return ValidationResult(True)


def validate_ip_address(ip: Any) -> ValidationResult:
    """Validate an IPv4 or IPv6 address.

    An address that looks like IPv4 but has an out-of-range octet keeps the
    octet-range message, so the operator sees what is actually wrong.
    """
    ipv4_result = validate_ipv4_address(ip)
    if ipv4_result.valid:
        return ipv4_result

    ipv6_result = validate_ipv6_address(ip)
    if ipv6_result.valid:
        return ipv6_result

    if isinstance(ip, str) and _IPV4_PATTERN.match(ip.strip()):
        return ipv4_result
    if not ip or not isinstance(ip, str):
        return ValidationResult(False, "IP address is required")
    return ValidationResult(
        False, "Invalid IP address format (must be valid IPv4 or IPv6)"
    )


def validate_capture_duration(duration: Any) -> ValidationResult:
    """Validate capture duration in minutes (1-60)."""
    if not _is_integer(duration):
        return ValidationResult(False, "Duration must be an integer number of minutes")
    if duration < MIN_CAPTURE_DURATION:
        return ValidationResult(False, f"Duration must be at least {MIN_CAPTURE_DURATION} minute")
    if duration > MAX_CAPTURE_DURATION:
        return ValidationResult(
            False, f"Duration cannot exceed {MAX_CAPTURE_DURATION} minutes"
        )
    return ValidationResult(True)


def validate_truncation_size(size: Any) -> ValidationResult:
    """Validate packet truncation size in bytes (0-65535, 0 = full packet).

    Sizes below 64 bytes are accepted with a warning.
    """
    if not _is_integer(size):
        return ValidationResult(False, "Truncation size must be an integer number of bytes")
    if size < MIN_TRUNCATION_BYTES:
        return ValidationResult(False, "Truncation size cannot be negative")
    if size > MAX_TRUNCATION_BYTES:
        return ValidationResult(
            False, f"Truncation size cannot exceed {MAX_TRUNCATION_BYTES} bytes"
        )
    if 0 < size < SAFE_TRUNCATION_BYTES:
        return ValidationResult(
            True,
            warning=(
                f"Truncation size below {SAFE_TRUNCATION_BYTES} bytes "
                f"may drop protocol headers"
            ),
        )
    return ValidationResult(True)


def validate_scp_config(scp_config: ScpConfig | None) -> ValidationResult:
    """Validate an SCP delivery target."""
    if scp_config is None:
        return ValidationResult(False, "SCP configuration is required")

    server_ip = scp_config.server_ip
    if not isinstance(server_ip, str) or not server_ip.strip():
        return ValidationResult(False, "SCP server IP address is required")

    ip_result = validate_ip_address(server_ip)
    if not ip_result.valid:
        return ValidationResult(False, f"SCP server IP: {ip_result.error}")

    if not isinstance(scp_config.username, str) or not scp_config.username.strip():
        return ValidationResult(False, "SCP username is required")

    if not isinstance(scp_config.password, str) or not scp_config.password.strip():
        return ValidationResult(False, "SCP password is required")

    path = scp_config.path
    if path is not None and not isinstance(path, str):
        return ValidationResult(False, "SCP path must be a string")
    if path and path.strip() and _SCP_PATH_FORBIDDEN.search(path):
        return ValidationResult(False, "SCP path contains invalid characters")

    return ValidationResult(True)


def _validate_filter(filter_type: Any, value: Any) -> ValidationResult:
    if filter_type == FilterType.MAC:
        result = validate_mac_address(value)
        label = "MAC"
    elif filter_type == FilterType.IP:
        result = validate_ip_address(value)
        label = "IP"
    else:
        return ValidationResult(False, f"Unsupported filter type: {filter_type!r}")

    if result.valid:
        return result
    return ValidationResult(False, f"Invalid {label} filter '{value}': {result.error}")


def validate_capture_config(
    config: CaptureConfig,
    access_points_available: int = 0,
) -> ValidationResult:
    """Validate a complete capture configuration.

    Rules are checked in a fixed order and the first failure wins:
    duration, truncation, wireless access point availability, SCP target,
    then each address filter.

    Args:
        config: Proposed capture configuration
        access_points_available: Number of access points known locally

    Returns:
        ValidationResult; a failed result carries the error code of its rule,
        a valid result may carry the truncation warning
    """
    duration_result = validate_capture_duration(config.duration_minutes)
    if not duration_result.valid:
        return replace(duration_result, code=CAPTURE_INVALID_DURATION)

    truncation_result = validate_truncation_size(config.truncation_bytes)
    if not truncation_result.valid:
        return replace(truncation_result, code=CAPTURE_INVALID_TRUNCATION)

    if config.location == CaptureLocation.WIRELESS:
        if not _is_integer(access_points_available) or access_points_available <= 0:
            return ValidationResult(
                False,
                "No access points available for wireless capture",
                code=CAPTURE_NO_ACCESS_POINTS,
            )

    if config.destination == CaptureDestination.SCP:
        scp_result = validate_scp_config(config.scp_config)
        if not scp_result.valid:
            return replace(scp_result, code=CAPTURE_INVALID_SCP)

    for address_filter in config.address_filters or []:
        filter_result = _validate_filter(
            getattr(address_filter, "type", None),
            getattr(address_filter, "value", None),
        )
        if not filter_result.valid:
            return replace(filter_result, code=CAPTURE_INVALID_FILTER)

    if truncation_result.warning:
        logger.debug(f"Capture config accepted with warning (warning={truncation_result.warning})")
    return ValidationResult(True, warning=truncation_result.warning)
