"""
Data models for the compatproc package.

This module provides centralized access to the data structures used
throughout the package, organized by functional area.
"""

from .config import (
    DEFAULT_LISTING_COMMAND,
    AffinityConfig,
    AppConfig,
    LauncherConfig,
    LoggingConfig,
    ProcessConfig,
)
from .process import (
    SPAWN_FAILED_STATUS,
    UNKNOWN_PID,
    LaunchHandle,
    ProcessRecord,
    SignalKind,
)

__all__ = [
    # Configuration models
    "DEFAULT_LISTING_COMMAND",
    "AffinityConfig",
    "AppConfig",
    "LauncherConfig",
    "LoggingConfig",
    "ProcessConfig",
    # Process models
    "SPAWN_FAILED_STATUS",
    "UNKNOWN_PID",
    "LaunchHandle",
    "ProcessRecord",
    "SignalKind",
]
