"""yt-dlp binary check utilities.

Reusable async functions for verifying that a located yt-dlp binary actually
runs, and for asking it to update itself. Both go through the shared
ProcessRunner so they honour the same timeout and cancellation rules as the
resolution pipeline.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ytdlp_resolver.core.metrics import MetricsCollector
from ytdlp_resolver.core.process import ProcessInvocation, ProcessOutcome, ProcessRunner


@dataclass
class CheckResult:
    """Result of a tool check.

    Attributes:
        name: Check name (e.g., "version", "update")
        available: Whether the tool ran and the check succeeded
        version: Version string if reported
        error: Error message if the check failed
        details: Additional details about the check result
    """

    name: str
    available: bool
    version: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


def _first_line(text: str) -> Optional[str]:
    for line in text.splitlines():
        line = line.strip()
        if line:
            return line
    return None


async def _run_tool_check(
    name: str,
    runner: ProcessRunner,
    tool_path: str,
    args: List[str],
    timeout: float,
    parse_output: Callable[[ProcessOutcome], Tuple[bool, Optional[str], Optional[str]]],
) -> CheckResult:
    """Run a tool check with common outcome handling.

    Args:
        name: Check name for the result and the metrics step label.
        runner: ProcessRunner to execute the tool with.
        tool_path: Path to the yt-dlp binary.
        args: Arguments to pass to the tool.
        timeout: Maximum time to wait in seconds.
        parse_output: Callback to interpret a zero-exit outcome.
            Should return (success, version, error_message).

    Returns:
        CheckResult with availability status.
    """
    outcome = await runner.run(ProcessInvocation(tool_path, args, timeout))
    MetricsCollector.record_invocation(name, outcome.label)

    if outcome.error_kind is not None:
        return CheckResult(name=name, available=False, error=outcome.error)

    if outcome.exit_code != 0:
        return CheckResult(
            name=name,
            available=False,
            error=outcome.stderr_text.strip() or f"yt-dlp exited with status {outcome.exit_code}",
            details={"exit_code": outcome.exit_code},
        )

    success, version, error = parse_output(outcome)
    return CheckResult(name=name, available=success, version=version, error=error)


async def check_tool(runner: ProcessRunner, tool_path: str, timeout: float = 5.0) -> CheckResult:
    """Check that yt-dlp runs and report its version.

    Args:
        runner: ProcessRunner to execute the tool with.
        tool_path: Path to the yt-dlp binary.
        timeout: Maximum time to wait for the check in seconds.

    Returns:
        CheckResult with availability status and version if available.
    """

    def parse_version(outcome: ProcessOutcome) -> Tuple[bool, Optional[str], Optional[str]]:
        version = _first_line(outcome.stdout_text)
        if version is None:
            return False, None, "yt-dlp printed no version"
        return True, version, None

    return await _run_tool_check(
        name="version",
        runner=runner,
        tool_path=tool_path,
        args=["--version"],
        timeout=timeout,
        parse_output=parse_version,
    )


async def self_update(runner: ProcessRunner, tool_path: str, timeout: float) -> CheckResult:
    """Run the yt-dlp self-update verb; succeeds only on a zero exit status."""

    def parse_update(outcome: ProcessOutcome) -> Tuple[bool, Optional[str], Optional[str]]:
        return True, None, None

    return await _run_tool_check(
        name="update",
        runner=runner,
        tool_path=tool_path,
        args=["-U"],
        timeout=timeout,
        parse_output=parse_update,
    )
