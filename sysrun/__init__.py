"""Run commands locally or on remote hosts over ssh."""

from sysrun.models import ExecutionOptions, ExecutionResult, FailureKind
from sysrun.services import Runner, get_runner


def run(
    host: str, command: str, options: ExecutionOptions | None = None
) -> ExecutionResult:
    """Run a command on ``host`` with the shared runner."""
    return get_runner().run(host, command, options)


__all__ = [
    "ExecutionOptions",
    "ExecutionResult",
    "FailureKind",
    "Runner",
    "get_runner",
    "run",
]
