"""
Process launcher with asynchronous output capture and exit notification.

This module starts compatibility-layer processes from shell-like command
strings, hands back their native pid immediately, and runs the follow-up
work (streaming stdout/stderr to the broadcaster, waiting for the exit
status) on a bounded worker pool owned by the launcher.
"""

import logging
import os
import subprocess
import weakref
from pathlib import Path
from typing import Callable, Dict, IO, Mapping, Optional, Sequence, Union

from ..models.config import LauncherConfig
from ..models.process import SPAWN_FAILED_STATUS, UNKNOWN_PID, LaunchHandle
from ..system.commands import tokenize_command
from ..validation import handle_error, ErrorSeverity
from .broadcaster import DebugStreamBroadcaster
from .thread_pool import ManagedThreadPoolExecutor, ThreadPoolConfig

logger = logging.getLogger(__name__)

# Echo sink for captured process output.
output_logger = logging.getLogger("compatproc.output")

TerminationCallback = Callable[[int], None]
EnvironmentOverrides = Union[Mapping[str, str], Sequence[str]]


def native_pid(process: subprocess.Popen) -> int:
    """
    Return the OS process id of a spawned process.

    This is the only place the launcher reads the pid from a process handle.

    Returns:
        The pid, or UNKNOWN_PID if the handle does not expose a usable one
    """
    pid = getattr(process, "pid", None)
    if isinstance(pid, int) and not isinstance(pid, bool) and pid > 0:
        return pid
    logger.warning(f"Native pid unavailable for process handle {process!r}")
    return UNKNOWN_PID


def build_environment(
    overrides: Optional[EnvironmentOverrides], inherit: bool = True
) -> Optional[Dict[str, str]]:
    """
    Build the environment for a child process.

    Args:
        overrides: Mapping of variables, or a sequence of "KEY=VALUE" strings.
            None keeps the current environment unchanged.
        inherit: Merge the overrides over os.environ instead of using them alone

    Returns:
        The environment mapping, or None to inherit the current one

    Raises:
        ValueError: If a sequence entry has no '='
    """
    if overrides is None:
        return None

    if isinstance(overrides, Mapping):
        variables = {str(key): str(value) for key, value in overrides.items()}
    else:
        variables = {}
        for entry in overrides:
            key, separator, value = entry.partition("=")
            if not separator or not key:
                raise ValueError(f"Environment entry must be KEY=VALUE, got {entry!r}")
            variables[key] = value

    if not inherit:
        return variables
    environment = dict(os.environ)
    environment.update(variables)
    return environment


class ProcessLauncher:
    """
    Starts processes and observes them from background workers.

    Output of a launch is captured only when the broadcaster has at least one
    listener at launch time; it is then read by exactly two reader tasks (one
    per stream). A termination callback adds one wait task. Every task of a
    launch observes the launch's cancellation event, and all of them run on
    this launcher's pool, so `shutdown` tears down the background work of
    every launch. Workers are reserved before the process is spawned, so a
    launch never waits for a worker to free up.
    """

    def __init__(
        self,
        broadcaster: Optional[DebugStreamBroadcaster] = None,
        config: Optional[LauncherConfig] = None,
        pool: Optional[ManagedThreadPoolExecutor] = None,
    ):
        """
        Args:
            broadcaster: Listener registry for captured output lines
            config: Launcher settings, defaults to LauncherConfig()
            pool: Worker pool to run background tasks on; created from the
                config when omitted and started if not running
        """
        self.broadcaster = broadcaster or DebugStreamBroadcaster()
        self.config = config or LauncherConfig()
        self.pool = pool or ManagedThreadPoolExecutor(
            ThreadPoolConfig(
                max_workers=self.config.max_workers,
                thread_name_prefix=self.config.thread_name_prefix,
                shutdown_timeout=self.config.shutdown_timeout,
            )
        )
        if self.pool.executor is None:
            self.pool.start()
        self._handles: "weakref.WeakSet[LaunchHandle]" = weakref.WeakSet()

    def launch(
        self,
        command: str,
        env: Optional[EnvironmentOverrides] = None,
        working_dir: Optional[Union[str, Path]] = None,
        on_terminate: Optional[TerminationCallback] = None,
    ) -> int:
        """
        Start a process and return its pid.

        Returns:
            The native pid, or UNKNOWN_PID (-1) if the process could not be started
        """
        return self.start(command, env, working_dir, on_terminate).pid

    def start(
        self,
        command: str,
        env: Optional[EnvironmentOverrides] = None,
        working_dir: Optional[Union[str, Path]] = None,
        on_terminate: Optional[TerminationCallback] = None,
    ) -> LaunchHandle:
        """
        Start a process and return the handle of the launch.

        Never raises for launch failures: the handle then has pid UNKNOWN_PID,
        any partially started process is killed and reaped, and `on_terminate`
        is called exactly once with SPAWN_FAILED_STATUS before this method
        returns. A launcher that is shut down, or whose pool has too few idle
        workers for the launch's readers and waiter, fails the launch before
        anything is spawned.

        Args:
            command: Command string, split with `tokenize_command`
            env: Environment overrides (mapping or "KEY=VALUE" strings)
            working_dir: Working directory of the new process
            on_terminate: Called with the exit status from a pool worker once
                the process exits
        """
        args = tokenize_command(command)
        handle = LaunchHandle(args=args)
        capture = self.broadcaster.has_listeners()
        output = subprocess.PIPE if capture else subprocess.DEVNULL
        workers = (2 if capture else 0) + (1 if on_terminate is not None else 0)
        reserved = 0

        try:
            if not args:
                raise ValueError(f"Command {command!r} contains no arguments")
            environment = build_environment(env, self.config.inherit_environment)
            if not self.pool.is_running:
                raise RuntimeError("Launcher is shut down")
            # Readers and the waiter must start at once, not queue behind other launches.
            if workers and not self.pool.reserve(workers):
                raise RuntimeError(f"No {workers} idle launch workers for {args[0]}")
            reserved = workers
            logger.debug(
                f"Executing: {args}, env overrides: {sorted(build_environment(env, False) or {})}, "
                f"cwd: {working_dir}"
            )

            handle.process = subprocess.Popen(
                args,
                env=environment,
                cwd=working_dir,
                stdin=subprocess.DEVNULL,
                stdout=output,
                stderr=output,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
            handle.pid = native_pid(handle.process)

            if capture:
                streams = ((handle.process.stdout, "STDOUT"), (handle.process.stderr, "STDERR"))
                for stream, label in streams:
                    reserved -= 1
                    handle.reader_futures.append(
                        self.pool.submit_reserved(self._read_stream, handle, stream, label)
                    )
            if on_terminate is not None:
                reserved -= 1
                handle.wait_future = self.pool.submit_reserved(
                    self._wait_for_exit, handle, on_terminate
                )

        except Exception as e:
            handle_error(
                error=e,
                context=f"executing command {args}",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )
            if reserved:
                self.pool.release(reserved)
            self._discard(handle)
            handle.pid = UNKNOWN_PID
            if on_terminate is not None:
                self._invoke_callback(on_terminate, SPAWN_FAILED_STATUS, args)
            return handle

        self._handles.add(handle)
        logger.info(
            f"Started {args[0]} with PID {handle.pid} "
            f"(output capture: {'on' if capture else 'off'}, "
            f"exit callback: {'yes' if on_terminate else 'no'})"
        )
        return handle

    def active_launches(self) -> int:
        """Number of launches whose background work has not finished."""
        return sum(
            1 for handle in list(self._handles)
            if any(not future.done() for future in handle.futures)
        )

    def shutdown(
        self, wait: bool = True, cancel_launches: bool = True, kill_processes: bool = False
    ) -> None:
        """
        Tear down the background work of every launch.

        Args:
            wait: Wait (up to the configured shutdown timeout) for tasks to end
            cancel_launches: Cancel every launch first, so waiters return
                without invoking callbacks and readers stop after their
                current line
            kill_processes: Also SIGKILL processes that are still running,
                which closes their pipes and unblocks idle readers
        """
        if cancel_launches:
            for handle in list(self._handles):
                handle.cancel(kill=kill_processes)
        self.pool.shutdown(wait=wait, cancel_futures=cancel_launches)

    def _read_stream(self, handle: LaunchHandle, stream: IO[str], label: str) -> None:
        """Forward every line of one output stream until EOF, error, or cancellation."""
        try:
            with stream:
                for raw_line in stream:
                    if handle.cancelled:
                        break
                    line = raw_line.rstrip("\r\n")
                    if self.config.echo_output:
                        output_logger.debug(f"[PID:{handle.pid}][{label}] {line}")
                    self.broadcaster.broadcast_line(line)
        except (OSError, ValueError) as e:
            logger.debug(f"Stopped reading {label} of PID {handle.pid}: {e}")

    def _wait_for_exit(self, handle: LaunchHandle, callback: TerminationCallback) -> Optional[int]:
        """Block until the process exits, then report its status to the callback."""
        process = handle.process
        status = None
        while not handle.cancelled:
            try:
                status = process.wait(timeout=self.config.wait_poll_interval)
                break
            except subprocess.TimeoutExpired:
                continue

        # A kill from cancel(kill=True) can end the wait; it is still a cancellation.
        if handle.cancelled:
            logger.warning(
                f"Stopped waiting for PID {handle.pid}: launch was cancelled, "
                f"termination callback not invoked"
            )
            return None

        logger.info(f"Process {handle.pid} exited with status {status}")
        self._invoke_callback(callback, status, handle.args)
        return status

    def _discard(self, handle: LaunchHandle) -> None:
        """Cancel a failed launch, then kill and reap its process if one was spawned."""
        handle.cancel(kill=True)
        process = handle.process
        if process is None:
            return
        try:
            process.wait(timeout=self.config.shutdown_timeout)
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.warning(f"Could not reap PID {handle.pid} of a failed launch: {e}")
        # Streams already handed to a reader are closed by that reader.
        streams = (process.stdout, process.stderr)[len(handle.reader_futures):]
        for stream in streams:
            if stream is not None:
                stream.close()

    @staticmethod
    def _invoke_callback(callback: TerminationCallback, status: int, args) -> None:
        try:
            callback(status)
        except Exception as e:
            handle_error(
                error=e,
                context=f"termination callback for {args}",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit: cancel launches and kill what is still running."""
        self.shutdown(wait=True, cancel_launches=True, kill_processes=True)
