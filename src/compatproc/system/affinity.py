"""
CPU affinity mask utilities.

This module converts CPU selections (comma separated index lists, per-CPU
flags, or index ranges) into affinity bitmasks where bit i allows logical
CPU i, and applies such masks to running processes.
"""

import logging
from typing import List, Optional, Sequence

import psutil

from ..validation import ValidationError, validate_cpu_index

logger = logging.getLogger(__name__)

DEFAULT_MASK_BITS = 32


def mask_from_list(cpu_list: Optional[str], mask_bits: int = DEFAULT_MASK_BITS) -> int:
    """Build an affinity mask from a comma separated list of CPU indices.

    Args:
        cpu_list: Indices such as "0,2,3". None or "" selects no CPU.
        mask_bits: Width of the mask; every index must be below it.

    Returns:
        The bitmask, e.g. 13 for "0,2,3".

    Raises:
        ValidationError: If any entry is not an integer in [0, mask_bits).
            No partial mask is ever returned.
    """
    if not cpu_list:
        return 0

    mask = 0
    for entry in cpu_list.split(","):
        index = validate_cpu_index(entry, mask_bits, field_name=f"CPU index in '{cpu_list}'")
        mask |= 1 << index
    return mask


def mask_as_hex(cpu_list: Optional[str], mask_bits: int = DEFAULT_MASK_BITS) -> str:
    """Render `mask_from_list` as lowercase hex without a prefix ("0,2,3" -> "d")."""
    return format(mask_from_list(cpu_list, mask_bits), "x")


def mask_from_flags(flags: Sequence[bool], mask_bits: int = DEFAULT_MASK_BITS) -> int:
    """Build an affinity mask from per-CPU flags, where flags[i] selects CPU i.

    Raises:
        ValidationError: If a selected position does not fit the mask.
    """
    mask = 0
    for index, selected in enumerate(flags):
        if not selected:
            continue
        if index >= mask_bits:
            raise ValidationError(
                f"CPU flag at position {index} does not fit a {mask_bits}-bit mask",
                field_name="flags",
                value=index,
            )
        mask |= 1 << index
    return mask


def mask_from_range(start: int, end: int, mask_bits: int = DEFAULT_MASK_BITS) -> int:
    """Build an affinity mask selecting CPUs in the half-open range [start, end).

    An empty range (start >= end) selects no CPU.

    Raises:
        ValidationError: If start is negative or end exceeds the mask width.
    """
    if start >= end:
        return 0
    if start < 0 or end > mask_bits:
        raise ValidationError(
            f"CPU range [{start}, {end}) does not fit a {mask_bits}-bit mask",
            field_name="range",
            value=(start, end),
        )
    mask = 0
    for index in range(start, end):
        mask |= 1 << index
    return mask


def cpus_from_mask(mask: int) -> List[int]:
    """List the CPU indices selected by a mask, in ascending order."""
    if mask < 0:
        raise ValidationError(f"Affinity mask must be non-negative, got {mask}", value=mask)
    return [index for index in range(mask.bit_length()) if mask >> index & 1]


def cpu_list_from_mask(mask: int) -> str:
    """Render a mask back to the comma separated form (13 -> "0,2,3")."""
    return ",".join(str(index) for index in cpus_from_mask(mask))


def apply_affinity_mask(pid: int, mask: int) -> bool:
    """Pin a running process to the CPUs selected by a mask.

    CPUs the host does not have are dropped from the request.

    Returns:
        True if the affinity was applied, False otherwise.
    """
    core_ids = cpus_from_mask(mask)
    try:
        available = psutil.cpu_count(logical=True) or 1
    except Exception as e:
        logger.warning(f"Failed to get CPU count: {e}")
        available = len(core_ids)

    usable = [core_id for core_id in core_ids if core_id < available]
    if not usable:
        logger.warning(
            f"Affinity mask {mask:#x} selects no available CPU (host has {available})"
        )
        return False
    if len(usable) < len(core_ids):
        logger.warning(
            f"Ignoring CPUs {sorted(set(core_ids) - set(usable))} not present on this host"
        )

    try:
        psutil.Process(pid).cpu_affinity(usable)
        logger.debug(f"Set CPU affinity of PID {pid} to {usable}")
        return True
    except Exception as e:
        logger.warning(f"Failed to set process affinity for PID {pid}: {e}")
        return False
