"""
Configuration data models.

This module contains the configuration data structures for process
discovery, the launcher, affinity masks and logging, loaded from
`config.toml`.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

# Android toybox column layout; every data row has exactly 9 fields.
DEFAULT_LISTING_COMMAND = "ps -A -o USER,PID,PPID,VSZ,RSS,WCHAN,ADDR,S,NAME"


@dataclass
class ProcessConfig:
    """
    Settings for process discovery, loaded from `[process]`.
    """

    # Command whose first output line contains `uid=<n>(<name>)`.
    identity_command: str = "id"
    # Command producing the `USER PID PPID VSZ RSS WCHAN ADDR S NAME` table.
    listing_command: str = DEFAULT_LISTING_COMMAND
    # Upper bound for either command, in seconds.
    command_timeout: float = 10.0
    # Root of the process-information filesystem.
    proc_root: Path = Path("/proc")
    # Substrings of a `stat` line that mark a compatibility-layer process.
    compat_layer_filters: List[str] = field(default_factory=lambda: ["wine", "exe"])


@dataclass
class LauncherConfig:
    """
    Settings for the process launcher and its worker pool, loaded from `[launcher]`.
    """

    max_workers: int = 48
    thread_name_prefix: str = "LaunchWorker"
    # Echo captured output lines to the `compatproc.output` logger.
    echo_output: bool = True
    # Merge environment overrides over the current environment.
    inherit_environment: bool = True
    wait_poll_interval: float = 0.2
    shutdown_timeout: float = 10.0


@dataclass
class AffinityConfig:
    """Settings for CPU affinity masks, loaded from `[affinity]`."""

    mask_bits: int = 32


@dataclass
class LoggingConfig:
    """Settings for log output, loaded from `[logging]`."""

    level: str = "INFO"


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    process: ProcessConfig = field(default_factory=ProcessConfig)
    launcher: LauncherConfig = field(default_factory=LauncherConfig)
    affinity: AffinityConfig = field(default_factory=AffinityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
