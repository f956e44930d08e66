"""
Process execution for the compatproc package.

This module provides the process launcher, the output-line broadcaster it
feeds, and the bounded worker pool that runs launch background work.
"""

from .broadcaster import DebugStreamBroadcaster
from .launcher import ProcessLauncher, build_environment, native_pid
from .thread_pool import ManagedThreadPoolExecutor, ThreadPoolConfig

__all__ = [
    "DebugStreamBroadcaster",
    "ProcessLauncher",
    "build_environment",
    "native_pid",
    "ManagedThreadPoolExecutor",
    "ThreadPoolConfig",
]
