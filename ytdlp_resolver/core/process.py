"""Subprocess execution primitive.

Runs a command with an explicit argument vector (never through a shell),
drains stdout and stderr concurrently while waiting, enforces a wall-clock
timeout and always reaps the child. Failures are returned as data in a
:class:`ProcessOutcome` rather than raised.
"""

import asyncio
import contextlib
import subprocess  # nosec B404 - argument vectors only, shell is never used
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Set

import psutil
import structlog

from ytdlp_resolver.core.logging import redact_url

logger = structlog.get_logger(__name__)

# Exit status reported when it could not be determined (spawn failure, timeout)
EXIT_UNKNOWN = -1

# Upper bound for reaping a child after it has been killed
REAP_TIMEOUT = 5.0


class ProcessErrorKind(str, Enum):
    """Why a process run did not produce an exit status."""

    SPAWN_FAILURE = "spawn_failure"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ProcessInvocation:
    """A single command to run.

    Attributes:
        command: Path or name of the executable
        args: Ordered argument vector passed verbatim to the executable
        timeout: Wall-clock limit in seconds
    """

    command: str
    args: Sequence[str] = ()
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.command:
            raise ValueError("command must not be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be greater than 0")
        object.__setattr__(self, "args", tuple(str(arg) for arg in self.args))

    @property
    def argv(self) -> List[str]:
        return [self.command, *self.args]


@dataclass(frozen=True)
class ProcessOutcome:
    """Captured result of a process run.

    Attributes:
        stdout: Captured standard output (empty on timeout or spawn failure)
        stderr: Captured standard error, None when the child wrote nothing
        exit_code: Exit status, EXIT_UNKNOWN when it could not be determined
        error_kind: Set when the run failed before producing an exit status
        error: Human-readable description of error_kind
        duration: Wall-clock duration in seconds
    """

    stdout: bytes = b""
    stderr: Optional[bytes] = None
    exit_code: int = EXIT_UNKNOWN
    error_kind: Optional[ProcessErrorKind] = None
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error_kind is None and self.exit_code == 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        if not self.stderr:
            return ""
        return self.stderr.decode("utf-8", errors="replace")

    @property
    def label(self) -> str:
        """Short outcome label for metrics."""
        if self.error_kind is not None:
            return self.error_kind.value
        return "ok" if self.exit_code == 0 else "exit_nonzero"


def _platform_kwargs() -> Dict[str, Any]:
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NO_WINDOW}
    return {}


def _kill_descendants(pid: int) -> None:
    """Kill every descendant of *pid* so no grandchild keeps the pipes open."""
    try:
        children = psutil.Process(pid).children(recursive=True)
    except psutil.Error:
        return
    for child in children:
        with contextlib.suppress(psutil.Error):
            child.kill()


class ProcessRunner:
    """Runs external commands and tracks the ones in flight.

    A runner may be shared by concurrent callers; :meth:`cancel_all` kills
    every child currently running under it.
    """

    def __init__(self) -> None:
        self._active: Set[asyncio.subprocess.Process] = set()
        self._cancelled: Set[int] = set()

    @property
    def active_count(self) -> int:
        return len(self._active)

    async def run(self, invocation: ProcessInvocation) -> ProcessOutcome:
        """
        Run *invocation* to completion, timeout or cancellation.

        Args:
            invocation: Command, arguments and timeout

        Returns:
            ProcessOutcome describing the run. Spawn failures and timeouts
            are reported through ``error_kind`` with ``exit_code`` set to
            EXIT_UNKNOWN.
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        log = logger.bind(
            command=invocation.command,
            args=[redact_url(arg) for arg in invocation.args],
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *invocation.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                **_platform_kwargs(),
            )
        except OSError as e:
            log.warning("process_spawn_failed", error=str(e))
            return ProcessOutcome(
                error_kind=ProcessErrorKind.SPAWN_FAILURE,
                error=f"Failed to start process: {e}",
                duration=loop.time() - start_time,
            )

        self._active.add(process)
        log.debug("process_started", pid=process.pid, timeout=invocation.timeout)

        try:
            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(), timeout=invocation.timeout
                )
            except asyncio.TimeoutError:
                log.warning("process_timeout", pid=process.pid, timeout=invocation.timeout)
                await self._terminate(process)
                return ProcessOutcome(
                    error_kind=ProcessErrorKind.TIMEOUT,
                    error=f"Process timed out after {invocation.timeout:g}s",
                    duration=loop.time() - start_time,
                )
        finally:
            # Also reached on task cancellation; the child must not outlive us
            if process.returncode is None:
                await self._terminate(process)
            self._active.discard(process)

        duration = loop.time() - start_time

        if process.pid in self._cancelled:
            self._cancelled.discard(process.pid)
            log.info("process_cancelled", pid=process.pid)
            return ProcessOutcome(
                error_kind=ProcessErrorKind.CANCELLED,
                error="Process was cancelled",
                duration=duration,
            )

        exit_code = process.returncode if process.returncode is not None else EXIT_UNKNOWN
        log.debug(
            "process_completed",
            pid=process.pid,
            exit_code=exit_code,
            stdout_bytes=len(stdout or b""),
            stderr_bytes=len(stderr or b""),
            duration=duration,
        )
        return ProcessOutcome(
            stdout=stdout or b"",
            stderr=stderr or None,
            exit_code=exit_code,
            duration=duration,
        )

    async def cancel_all(self) -> int:
        """
        Kill every process currently running under this runner.

        Returns:
            Number of processes that were signalled
        """
        processes = [p for p in self._active if p.returncode is None]
        for process in processes:
            self._cancelled.add(process.pid)
            _kill_descendants(process.pid)
            with contextlib.suppress(ProcessLookupError):
                process.kill()
        if processes:
            logger.info("processes_cancelled", count=len(processes))
        return len(processes)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Kill *process* and its descendants, then reap it."""
        _kill_descendants(process.pid)
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        try:
            await asyncio.wait_for(process.wait(), timeout=REAP_TIMEOUT)
        except asyncio.TimeoutError:
            logger.error("process_reap_timeout", pid=process.pid)
