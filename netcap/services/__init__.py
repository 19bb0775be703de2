# Cross-cutting services package

from .thread_manager import (
    ThreadManager,
    get_thread_manager,
    reset_thread_manager,
)
from .interval_timer import IntervalTimer
from .controller_client import (
    ControllerClient,
    extract_error_message,
)
from .capture_api import (
    PacketCaptureApi,
    unwrap_list,
)

__all__ = [
    # Thread manager
    "ThreadManager",
    "get_thread_manager",
    "reset_thread_manager",
    # Timers
    "IntervalTimer",
    # Controller access
    "ControllerClient",
    "extract_error_message",
    "PacketCaptureApi",
    "unwrap_list",
]
