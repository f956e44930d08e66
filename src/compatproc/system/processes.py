"""
Process discovery from textual OS introspection.

This module reconstructs process ownership from the output of an identity
query and a process listing command, and finds compatibility-layer processes
by scanning `/proc/<pid>/stat`. Both strategies are best-effort: failures
produce empty results, never exceptions, and every result is only valid at
the instant of the scan.
"""

import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from ..models.config import ProcessConfig
from ..models.process import ProcessRecord
from .commands import run_command

logger = logging.getLogger(__name__)

# First parenthesized group of e.g. "uid=10290(u0_a290) gid=10290(u0_a290) ..."
_USER_NAME_PATTERN = re.compile(r"\(([^)]*)\)")

LISTING_FIELD_COUNT = 9
_USER_COLUMN = 0
_PID_COLUMN = 1
_PPID_COLUMN = 2
_NAME_COLUMN = 8


def parse_user_name(identity_output: str) -> Optional[str]:
    """Extract the user name from the first line of identity query output.

    Examples:
        >>> parse_user_name("uid=10290(u0_a290) gid=10290(u0_a290) groups=3003(inet)")
        'u0_a290'
        >>> parse_user_name("") is None
        True
    """
    lines = identity_output.splitlines()
    if not lines:
        return None
    match = _USER_NAME_PATTERN.search(lines[0])
    if match is None:
        return None
    return match.group(1)


def parse_process_listing(listing_output: str, user: str, exclude_pid: int) -> List[ProcessRecord]:
    """Parse a `USER PID PPID VSZ RSS WCHAN ADDR S NAME` table.

    The header line is skipped. Rows with fewer than nine fields, rows owned
    by another user and the row for `exclude_pid` are dropped, as are rows
    whose PID or PPID is not numeric.
    """
    records: List[ProcessRecord] = []
    for line in listing_output.splitlines()[1:]:
        parts = line.split()
        if len(parts) < LISTING_FIELD_COUNT or parts[_USER_COLUMN] != user:
            continue
        try:
            pid = int(parts[_PID_COLUMN])
            ppid = int(parts[_PPID_COLUMN])
        except ValueError:
            logger.debug(f"Skipping unparsable process listing row: {line!r}")
            continue
        if pid == exclude_pid:
            continue
        records.append(ProcessRecord(pid=pid, ppid=ppid, name=parts[_NAME_COLUMN]))
    return records


class ProcessEnumerator:
    """
    Finds processes owned by the current user or by the compatibility layer.

    The enumerator keeps no state between calls; the process table is always
    read fresh.
    """

    def __init__(self, config: Optional[ProcessConfig] = None, self_pid: Optional[int] = None):
        """
        Args:
            config: Discovery settings, defaults to ProcessConfig()
            self_pid: Pid treated as the caller's own, defaults to os.getpid()
        """
        self.config = config or ProcessConfig()
        self.self_pid = self_pid if self_pid is not None else os.getpid()

    def current_user(self) -> Optional[str]:
        """Name of the user owning this process, or None if it cannot be determined."""
        returncode, stdout, stderr = run_command(
            self.config.identity_command, timeout=self.config.command_timeout
        )
        if returncode != 0:
            logger.error(
                f"Failed to retrieve user id in order to list processes: "
                f"exit code {returncode}, {stderr.strip()}"
            )
            return None

        user = parse_user_name(stdout)
        if user is None:
            logger.warning(f"Could not find a user name in identity output: {stdout[:80]!r}")
        return user

    def list_owned_processes(self) -> List[ProcessRecord]:
        """
        List processes owned by the current user, excluding this process.

        Returns:
            ProcessRecord per qualifying listing row; empty on any failure
        """
        user = self.current_user()
        if user is None:
            return []

        returncode, stdout, stderr = run_command(
            self.config.listing_command, timeout=self.config.command_timeout
        )
        if returncode != 0:
            logger.error(f"Failed to list processes: exit code {returncode}, {stderr.strip()}")
            return []

        records = parse_process_listing(stdout, user, self.self_pid)
        logger.debug(f"Found {len(records)} processes owned by {user}")
        return records

    def list_compat_layer_pids(self) -> List[int]:
        """
        List pids whose `stat` line mentions a compatibility-layer filter.

        Returns:
            Matching pids in ascending order, each at most once
        """
        proc_root = Path(self.config.proc_root)
        try:
            entries = [entry for entry in proc_root.iterdir() if entry.name.isdigit()]
        except OSError as e:
            logger.error(f"Failed to scan {proc_root}: {e}")
            return []

        pids: List[int] = []
        for entry in entries:
            stat_line = _read_stat_line(entry / "stat")
            if stat_line is None:
                continue
            if any(token in stat_line for token in self.config.compat_layer_filters):
                pids.append(int(entry.name))

        pids.sort()
        logger.debug(f"Found {len(pids)} compatibility-layer processes")
        return pids


def _read_stat_line(stat_path: Path) -> Optional[str]:
    """First line of a stat file, or None if it cannot be read."""
    try:
        with open(stat_path, "r", encoding="utf-8", errors="replace") as f:
            return f.readline()
    except OSError:
        return None
