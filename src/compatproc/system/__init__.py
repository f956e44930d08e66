"""
System interaction utilities for process control.

This module provides the OS-facing building blocks:

- Command tokenizing and helper command execution
- CPU affinity mask computation and application
- Process discovery from the process listing and `/proc`
- Signal delivery to single processes and to the compatibility layer
"""

from .affinity import (
    apply_affinity_mask,
    cpu_list_from_mask,
    cpus_from_mask,
    mask_as_hex,
    mask_from_flags,
    mask_from_list,
    mask_from_range,
)
from .commands import run_command, tokenize_command
from .processes import ProcessEnumerator, parse_process_listing, parse_user_name
from .signals import SignalController

__all__ = [
    # Commands
    "run_command",
    "tokenize_command",
    # Affinity
    "apply_affinity_mask",
    "cpu_list_from_mask",
    "cpus_from_mask",
    "mask_as_hex",
    "mask_from_flags",
    "mask_from_list",
    "mask_from_range",
    # Processes
    "ProcessEnumerator",
    "parse_process_listing",
    "parse_user_name",
    # Signals
    "SignalController",
]
