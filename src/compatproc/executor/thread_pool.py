"""
Bounded thread pool for launch background work.

Stream readers and exit waiters of every launch run on one of these pools
instead of on dedicated threads, so the number of threads a launcher can
create is fixed and all of them can be shut down together.
"""

import logging
import threading
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as futures_wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set

from ..validation import handle_error, ErrorSeverity

logger = logging.getLogger(__name__)


@dataclass
class ThreadPoolConfig:
    """Size and naming of a launch worker pool."""

    max_workers: int = 48
    thread_name_prefix: str = "LaunchWorker"
    # Upper bound for shutdown(wait=True).
    shutdown_timeout: float = 10.0


class ManagedThreadPoolExecutor:
    """
    ThreadPoolExecutor wrapper that tracks in-flight launch tasks.

    A reader task lives as long as its pipe, so a pool whose workers are all
    taken queues new work until a launch ends. Callers that cannot tolerate
    queueing claim workers up front with `reserve` and hand them over with
    `submit_reserved`; plain `submit` in a saturated pool is logged with the
    queue depth.
    """

    def __init__(self, config: ThreadPoolConfig):
        self.config = config
        self.executor: Optional[ThreadPoolExecutor] = None
        self.active_futures: Set[Future] = set()
        self.is_shutdown = False
        self._lock = threading.Lock()
        # Workers promised to tasks that have not been submitted yet.
        self._reserved = 0
        self.stats: Counter = Counter(
            tasks_submitted=0, tasks_completed=0, tasks_failed=0, tasks_cancelled=0
        )

    @property
    def is_running(self) -> bool:
        return self.executor is not None and not self.is_shutdown

    def start(self) -> None:
        """
        Create the worker threads' executor.

        Raises:
            RuntimeError: If the pool was started before
        """
        if self.executor is not None:
            raise RuntimeError("Thread pool already started")
        self.executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix=self.config.thread_name_prefix,
        )
        self.is_shutdown = False
        logger.info(
            f"Launch worker pool '{self.config.thread_name_prefix}' ready "
            f"with {self.config.max_workers} workers"
        )

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        """
        Queue one background task.

        Raises:
            RuntimeError: If the pool is not running
        """
        if self.executor is None:
            raise RuntimeError("Thread pool not started")
        if self.is_shutdown:
            raise RuntimeError("Thread pool is shutdown")

        try:
            with self._lock:
                in_flight = len(self.active_futures)
                future = self.executor.submit(fn, *args, **kwargs)
                self.active_futures.add(future)
                self.stats["tasks_submitted"] += 1
        except Exception as e:
            with self._lock:
                self.stats["tasks_failed"] += 1
            handle_error(
                error=e,
                context=f"queueing {getattr(fn, '__name__', fn)!s} on the launch pool",
                severity=ErrorSeverity.ERROR,
                reraise=True,
                logger=logger,
            )

        if in_flight >= self.config.max_workers:
            logger.warning(
                f"All {self.config.max_workers} workers are busy, "
                f"task queued behind {in_flight - self.config.max_workers + 1} others"
            )
        future.add_done_callback(self._task_completed)
        return future

    def reserve(self, count: int) -> bool:
        """
        Claim `count` idle workers for tasks submitted later.

        Returns:
            False, without claiming anything, if the pool is not running or
            fewer than `count` workers are neither busy nor reserved
        """
        with self._lock:
            if not self.is_running:
                return False
            idle = self.config.max_workers - len(self.active_futures) - self._reserved
            if count > idle:
                logger.warning(
                    f"Cannot reserve {count} launch workers, only {max(idle, 0)} "
                    f"of {self.config.max_workers} are idle"
                )
                return False
            self._reserved += count
            return True

    def release(self, count: int) -> None:
        """Give back reserved workers that will not be used."""
        with self._lock:
            self._reserved = max(0, self._reserved - count)

    def submit_reserved(self, fn: Callable, *args, **kwargs) -> Future:
        """Submit a task onto a worker claimed earlier with `reserve`."""
        self.release(1)
        return self.submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """
        Stop accepting tasks and release the executor.

        Args:
            wait: Wait up to `shutdown_timeout` for in-flight tasks; tasks
                still running after that keep their threads until they return
            cancel_futures: Cancel tasks that have not started yet
        """
        if self.executor is None or self.is_shutdown:
            return

        self.is_shutdown = True
        try:
            with self._lock:
                in_flight = list(self.active_futures)
            if cancel_futures:
                for future in in_flight:
                    future.cancel()
            if wait and in_flight:
                _, not_done = futures_wait(in_flight, timeout=self.config.shutdown_timeout)
                if not_done:
                    logger.warning(
                        f"{len(not_done)} launch tasks still running after the "
                        f"{self.config.shutdown_timeout}s shutdown timeout"
                    )
            self.executor.shutdown(wait=False)
            logger.info(f"Launch worker pool stopped ({len(in_flight)} tasks were in flight)")
        except Exception as e:
            handle_error(
                error=e,
                context="stopping the launch worker pool",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )
        finally:
            self.executor = None
            with self._lock:
                self.active_futures.clear()
                self._reserved = 0

    def get_stats(self) -> Dict[str, Any]:
        """Task counters plus the current number of in-flight tasks."""
        with self._lock:
            stats: Dict[str, Any] = dict(self.stats)
            stats["active_futures"] = len(self.active_futures)
            stats["reserved_workers"] = self._reserved
        stats["is_shutdown"] = self.is_shutdown
        stats["success_rate"] = stats["tasks_completed"] / max(1, stats["tasks_submitted"]) * 100
        return stats

    def _task_completed(self, future: Future) -> None:
        if future.cancelled():
            outcome = "tasks_cancelled"
        elif future.exception() is not None:
            outcome = "tasks_failed"
            logger.warning(f"Launch task failed: {future.exception()!r}")
        else:
            outcome = "tasks_completed"
        with self._lock:
            self.active_futures.discard(future)
            self.stats[outcome] += 1

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
