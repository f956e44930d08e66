"""
compatproc: lifecycle control for compatibility-layer child processes.

This package launches processes that run translated binaries under a
compatibility layer, finds them again by scanning the process table, and
controls them with POSIX signals.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- system: Command tokenizing, affinity masks, process discovery, signals
- executor: Process launching, output broadcasting, worker pool
- cli: Command-line interface

Usage:
    From command line:
        compatproc launch "wine explorer /desktop=shell"

    Programmatically:
        from compatproc import DebugStreamBroadcaster, ProcessLauncher
        broadcaster = DebugStreamBroadcaster()
        broadcaster.add_listener(print)
        launcher = ProcessLauncher(broadcaster)
        pid = launcher.launch("wine winecfg", env={"WINEDEBUG": "-all"})
        ...
        # Stops the output readers; winecfg keeps running.
        launcher.shutdown(kill_processes=False)

    Leaving a `with ProcessLauncher(...)` block kills every process the
    launcher started that is still running.
"""

from .config import get_config, clear_config_cache, set_config_path

from .models import (
    AppConfig,
    LaunchHandle,
    LauncherConfig,
    ProcessConfig,
    ProcessRecord,
    SignalKind,
    SPAWN_FAILED_STATUS,
    UNKNOWN_PID,
)

from .validation import ValidationError

from .system import (
    ProcessEnumerator,
    SignalController,
    apply_affinity_mask,
    mask_as_hex,
    mask_from_flags,
    mask_from_list,
    mask_from_range,
    run_command,
    tokenize_command,
)

from .executor import DebugStreamBroadcaster, ProcessLauncher

__version__ = "1.0.0"

__all__ = [
    # Configuration
    "get_config",
    "clear_config_cache",
    "set_config_path",
    # Models
    "AppConfig",
    "LaunchHandle",
    "LauncherConfig",
    "ProcessConfig",
    "ProcessRecord",
    "SignalKind",
    "SPAWN_FAILED_STATUS",
    "UNKNOWN_PID",
    # Validation
    "ValidationError",
    # System
    "ProcessEnumerator",
    "SignalController",
    "apply_affinity_mask",
    "mask_as_hex",
    "mask_from_flags",
    "mask_from_list",
    "mask_from_range",
    "run_command",
    "tokenize_command",
    # Execution
    "DebugStreamBroadcaster",
    "ProcessLauncher",
]
