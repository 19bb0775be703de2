"""Centralized thread tracking for NETCAP.

Keeps a registry of the named background threads started by the capture
manager so they can be counted.
"""

import logging
import threading
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class ThreadManager:
    """Registry of active background threads.

    Thread naming convention:
    - service-capture-poller
    - service-capture-progress
    """

    def __init__(self):
        """Initialize an empty thread registry."""
        self._active_threads: Dict[str, threading.Thread] = {}
        self._threads_lock = threading.Lock()

        logger.info('ThreadManager initialized')

    def register_thread(self, name: str, thread: threading.Thread) -> None:
        """Register an active thread for tracking.

        Args:
            name: Unique thread name
            thread: Thread object to track
        """
        with self._threads_lock:
            self._active_threads[name] = thread
            logger.debug(f'Thread registered (name={name})')

    def unregister_thread(self, name: str, thread: Optional[threading.Thread] = None) -> Optional[threading.Thread]:
        """Unregister a thread.

        Args:
            name: Thread name to unregister
            thread: If given, only unregister when the registered thread is this one

        Returns:
            The unregistered thread or None if not found
        """
        with self._threads_lock:
            current = self._active_threads.get(name)
            if current is None or (thread is not None and current is not thread):
                return None
            del self._active_threads[name]
            logger.debug(f'Thread unregistered (name={name})')
            return current

    def get_active_thread_count(self, prefix: str = '') -> int:
        """Get count of active tracked threads.

        Args:
            prefix: Only count threads whose name starts with this prefix

        Returns:
            Number of active threads
        """
        with self._threads_lock:
            return sum(1 for name in self._active_threads if name.startswith(prefix))


# Global singleton instance
_thread_manager: Optional[ThreadManager] = None


def get_thread_manager() -> ThreadManager:
    """Get the global ThreadManager instance.

    Creates the instance on first call.

    Returns:
        ThreadManager singleton instance
    """
    global _thread_manager

    if _thread_manager is None:
        _thread_manager = ThreadManager()

    return _thread_manager


def reset_thread_manager() -> None:
    """Reset the global ThreadManager instance (for testing)."""
    global _thread_manager
    _thread_manager = None
