"""Capture file size estimation for NETCAP.

Rough pre-flight heuristic shown to the operator before a capture starts.
The estimate is advisory and never blocks a start request.
"""

from __future__ import annotations

import math

from netcap.models.capture import SizeEstimate

DEFAULT_PACKETS_PER_SECOND = 100
STANDARD_MTU_BYTES = 1500
# Per-packet record header in the capture file format
PER_PACKET_OVERHEAD_BYTES = 24
BYTES_PER_MB = 1024 * 1024

CRITICAL_SIZE_MB = 1000
LARGE_SIZE_MB = 500


def estimate_capture_file_size(
    duration_minutes: int,
    truncation_bytes: int,
    packets_per_second: int | None = DEFAULT_PACKETS_PER_SECOND,
) -> SizeEstimate:
    """Estimate the size of the resulting capture file.

    Args:
        duration_minutes: Capture duration in minutes
        truncation_bytes: Snap length in bytes (0 = full packet, MTU assumed)
        packets_per_second: Expected packet rate (non-positive falls back to 100)

    Returns:
        SizeEstimate with the size in MB (rounded half up) and an optional warning

    Example:
        estimate_capture_file_size(60, 0).estimated_size_mb
        # Returns: 523 (100 pkt/s * 3600 s * 1524 bytes)
    """
    if not packets_per_second or packets_per_second <= 0:
        packets_per_second = DEFAULT_PACKETS_PER_SECOND

    avg_packet_size = truncation_bytes if truncation_bytes > 0 else STANDARD_MTU_BYTES
    total_packets = packets_per_second * duration_minutes * 60
    total_bytes = total_packets * (avg_packet_size + PER_PACKET_OVERHEAD_BYTES)
    estimated_size_mb = int(math.floor(total_bytes / BYTES_PER_MB + 0.5))

    if estimated_size_mb > CRITICAL_SIZE_MB:
        return SizeEstimate(
            estimated_size_mb,
            warning=(
                "Estimated file size exceeds 1GB. "
                "Consider reducing duration or adding filters."
            ),
            severity="critical",
        )
    if estimated_size_mb > LARGE_SIZE_MB:
        return SizeEstimate(
            estimated_size_mb,
            warning="Estimated file size is large. Download may take significant time.",
            severity="warning",
        )
    return SizeEstimate(estimated_size_mb)
