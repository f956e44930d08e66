"""
Signal delivery to individual processes and to the compatibility layer.

Every operation sends exactly one signal per target and returns as soon as
the kernel accepted or rejected it. Nothing here waits for, retries, or
verifies the state change.
"""

import logging
import os
from typing import Dict, Optional

from ..models.process import SignalKind
from .processes import ProcessEnumerator

logger = logging.getLogger(__name__)


class SignalController:
    """
    Sends suspend, resume, terminate and kill signals.

    Bulk operations target every pid found by the enumerator's
    compatibility-layer scan.
    """

    def __init__(self, enumerator: Optional[ProcessEnumerator] = None):
        self.enumerator = enumerator or ProcessEnumerator()

    def send(self, pid: int, kind: SignalKind) -> bool:
        """
        Send one signal to one process.

        Returns:
            True if the signal was delivered to the kernel, False otherwise
        """
        try:
            os.kill(pid, kind.value)
        except ProcessLookupError:
            logger.debug(f"Cannot {kind.name.lower()} PID {pid}: no such process")
            return False
        except PermissionError:
            logger.warning(f"Cannot {kind.name.lower()} PID {pid}: permission denied")
            return False
        except OSError as e:
            logger.warning(f"Failed to {kind.name.lower()} PID {pid}: {e}")
            return False
        logger.debug(f"Sent {kind.name} (signal {kind.value}) to PID {pid}")
        return True

    def suspend(self, pid: int) -> bool:
        return self.send(pid, SignalKind.SUSPEND)

    def resume(self, pid: int) -> bool:
        return self.send(pid, SignalKind.RESUME)

    def terminate(self, pid: int) -> bool:
        return self.send(pid, SignalKind.TERMINATE)

    def kill(self, pid: int) -> bool:
        return self.send(pid, SignalKind.KILL)

    def send_all(self, kind: SignalKind) -> Dict[int, bool]:
        """
        Send one signal to every compatibility-layer process.

        The scan runs once; each pid is signalled independently, so a pid that
        exited since the scan does not stop the rest.

        Returns:
            Mapping of pid to whether its signal was delivered
        """
        results = {pid: self.send(pid, kind) for pid in self.enumerator.list_compat_layer_pids()}
        delivered = sum(results.values())
        logger.info(
            f"Sent {kind.name} to {delivered}/{len(results)} compatibility-layer processes"
        )
        return results

    def suspend_all(self) -> Dict[int, bool]:
        return self.send_all(SignalKind.SUSPEND)

    def resume_all(self) -> Dict[int, bool]:
        return self.send_all(SignalKind.RESUME)

    def terminate_all(self) -> Dict[int, bool]:
        return self.send_all(SignalKind.TERMINATE)

    def kill_all(self) -> Dict[int, bool]:
        return self.send_all(SignalKind.KILL)
