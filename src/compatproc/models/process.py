"""
Process data models.

This module contains the value types produced by process enumeration and
the per-launch state returned by the launcher.
"""

import signal
import subprocess
import threading
from concurrent.futures import Future, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

# Returned in place of a pid when the native process id cannot be obtained.
UNKNOWN_PID = -1

# Status passed to a termination callback when the spawn itself failed.
SPAWN_FAILED_STATUS = -1


@dataclass(frozen=True)
class ProcessRecord:
    """
    One row of the process table, as seen at the instant of the scan.
    """

    pid: int
    ppid: int
    name: str


class SignalKind(Enum):
    """Signals used to control processes, valued with the host's numbers."""

    SUSPEND = signal.SIGSTOP
    RESUME = signal.SIGCONT
    TERMINATE = signal.SIGTERM
    KILL = signal.SIGKILL


@dataclass(eq=False)
class LaunchHandle:
    """
    Transient state of a single launch.

    The handle owns the background work submitted for the launch (zero or two
    stream readers and an optional wait task) and the cancellation event they
    all observe.
    """

    # Tokenized argument vector the process was (or would have been) started with.
    args: List[str]
    pid: int = UNKNOWN_PID
    process: Optional[subprocess.Popen] = None
    reader_futures: List[Future] = field(default_factory=list)
    wait_future: Optional[Future] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def started(self) -> bool:
        return self.process is not None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self, kill: bool = False) -> None:
        """
        Stop the launch's background work.

        Readers stop broadcasting after their current line and the wait task
        returns without invoking the termination callback. Readers blocked on
        a quiet pipe only return once the process writes or exits, so pass
        ``kill=True`` to also SIGKILL the process.
        """
        self.cancel_event.set()
        if kill and self.process is not None and self.process.poll() is None:
            try:
                self.process.kill()
            except OSError:
                pass

    @property
    def futures(self) -> List[Future]:
        """Every background task of the launch."""
        futures = list(self.reader_futures)
        if self.wait_future is not None:
            futures.append(self.wait_future)
        return futures

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the launch's background tasks to finish.

        Returns:
            True if every task finished within the timeout
        """
        futures = self.futures
        if not futures:
            return True
        _, not_done = wait(futures, timeout=timeout)
        return not not_done
