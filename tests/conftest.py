"""
Pytest configuration and shared fixtures for the compatproc test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the project.
"""

import io
import sys
import threading
from pathlib import Path
from typing import Dict, List
from unittest.mock import Mock, patch

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from compatproc.config import clear_config_cache  # noqa: E402
from compatproc.models import ProcessConfig  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


@pytest.fixture(autouse=True)
def reset_config_cache():
    """Make every test start from the default configuration source."""
    clear_config_cache()
    yield
    clear_config_cache()


# ============================================================================
# Process Table Fixtures
# ============================================================================


IDENTITY_OUTPUT = "uid=10290(u0_a290) gid=10290(u0_a290) groups=10290(u0_a290),3003(inet)\n"

LISTING_OUTPUT = """USER           PID  PPID     VSZ    RSS WCHAN            ADDR S NAME
root             1     0 2215856   4620 do_epoll_+          0 S init
u0_a290       4321   700 1524320  98304 do_epoll_+          0 S app.gamenative
u0_a290       5000  4321   10712   2816 do_wait             0 S sh
u0_a290       5001  5000 4096000 204800 futex_wai+          0 S wineserver
system         900     1   12000   3000 do_sys_po+          0 S servicemanager
u0_a290       5002  5000 8192000 409600 futex_wai+          0 R explorer.exe
u0_a290       short  row
"""


@pytest.fixture
def listing_output() -> str:
    return LISTING_OUTPUT


@pytest.fixture
def fake_proc(tmp_path) -> Path:
    """
    Create a fake /proc tree.

    Pids 100 and 101 look like compatibility-layer processes, 102 does not,
    103 has no stat file, and `self` / `cpuinfo` are non-numeric entries.
    """
    root = tmp_path / "proc"
    entries: Dict[str, str] = {
        "100": "100 (wineserver) S 1 100 100 0 -1 4194560\n",
        "101": "101 (explorer.exe) R 100 100 100 0 -1 4194304\n",
        "102": "102 (bash) S 1 102 102 0 -1 4194304\n",
        "7": "7 (winedevice.exe) S 100 100 100 0 -1 4194304\n",
        "self": "1 (wine-like) S 0 0 0 0 -1 0\n",
    }
    for name, stat in entries.items():
        (root / name).mkdir(parents=True)
        (root / name / "stat").write_text(stat)
    (root / "103").mkdir()
    (root / "cpuinfo").write_text("processor : 0\n")
    return root


@pytest.fixture
def fake_proc_config(fake_proc) -> ProcessConfig:
    return ProcessConfig(proc_root=fake_proc)


@pytest.fixture
def mock_run_command():
    """Patch the helper command runner used by the process enumerator."""
    with patch("compatproc.system.processes.run_command") as mock_run:
        mock_run.side_effect = lambda command, **kwargs: (
            (0, IDENTITY_OUTPUT, "") if command == "id" else (0, LISTING_OUTPUT, "")
        )
        yield mock_run


# ============================================================================
# Test Utilities
# ============================================================================


class LineCollector:
    """Thread-safe output listener that records every delivered line."""

    def __init__(self):
        self.lines: List[str] = []
        self._lock = threading.Lock()

    def __call__(self, line: str) -> None:
        with self._lock:
            self.lines.append(line)


@pytest.fixture
def line_collector() -> LineCollector:
    return LineCollector()


@pytest.fixture
def mock_popen():
    """Patch subprocess.Popen in the launcher with a process that never exits on its own."""
    with patch("compatproc.executor.launcher.subprocess.Popen") as popen_class:
        process = Mock()
        process.pid = 4242
        process.poll.return_value = None
        process.stdout = io.StringIO("")
        process.stderr = io.StringIO("")
        popen_class.return_value = process
        yield {"Popen": popen_class, "process": process}
