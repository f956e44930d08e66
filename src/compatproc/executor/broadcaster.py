"""
Fan-out of captured process output lines to registered listeners.
"""

import logging
import threading
from typing import Callable, List

from ..validation import handle_error, ErrorSeverity

logger = logging.getLogger(__name__)

OutputListener = Callable[[str], None]


class DebugStreamBroadcaster:
    """
    Thread-safe registry of output-line listeners.

    Stream readers call `broadcast_line` for every captured line; each
    registered listener is called synchronously, in registration order, while
    the registry lock is held. A slow listener therefore delays the reader that
    produced the line and the other listeners for that line, but not readers of
    other streams beyond the time the lock is held.

    The launcher checks `has_listeners` when a process is started to decide
    whether its output is captured at all.
    """

    def __init__(self):
        self._listeners: List[OutputListener] = []
        # Re-entrant so a listener may (un)register listeners while being called.
        self._lock = threading.RLock()

    def add_listener(self, listener: OutputListener) -> None:
        """Register a listener; registering it again is a no-op."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)
                logger.debug(f"Registered output listener {listener!r}")

    def remove_listener(self, listener: OutputListener) -> None:
        """Unregister a listener; removing an unknown listener is a no-op."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
                logger.debug(f"Removed output listener {listener!r}")

    def clear_listeners(self) -> None:
        with self._lock:
            self._listeners.clear()

    def has_listeners(self) -> bool:
        with self._lock:
            return bool(self._listeners)

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def broadcast_line(self, line: str) -> None:
        """
        Deliver one line to every registered listener.

        A listener that raises is logged and skipped; the remaining listeners
        still receive the line.
        """
        with self._lock:
            if not self._listeners:
                return
            for listener in tuple(self._listeners):
                try:
                    listener(line)
                except Exception as e:
                    handle_error(
                        error=e,
                        context=f"output listener {listener!r}",
                        severity=ErrorSeverity.WARNING,
                        reraise=False,
                        logger=logger,
                    )
