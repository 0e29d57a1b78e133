"""Command execution result models."""

from dataclasses import dataclass
from enum import Enum

# Exit code reported for a command killed by the watchdog.
TIMEOUT_EXIT_CODE = 1


class FailureKind(str, Enum):
    """Why an execution did not succeed."""

    SPAWN = "spawn"
    EXIT = "exit"
    TIMEOUT = "timeout"
    RESOLUTION = "resolution"


@dataclass
class ExecutionResult:
    """Outcome of one command execution.

    ``ok`` and ``exit_code`` are the two ways to inspect a result. ``value``
    reproduces the older encoding where the shape of the return value
    depended on ``return_rv``:

    - ``return_rv`` false: success gives the captured text (capture to a temp
      file) or ``True``; failure gives ``None``. A command that succeeds with
      empty captured output is indistinguishable from a failure here, use
      ``ok`` and ``output`` instead.
    - ``return_rv`` true: always the raw exit code, ``0`` meaning success.
    """

    command: str
    exit_code: int | None
    output: str | None = None
    failure: FailureKind | None = None
    timed_out: bool = False
    dry_run: bool = False
    attempts: int = 1
    duration: float = 0.0
    return_rv: bool = False

    @property
    def ok(self) -> bool:
        """True when the command exited with code 0."""
        return self.exit_code == 0

    def __bool__(self) -> bool:
        return self.ok

    @property
    def value(self) -> str | int | bool | None:
        """Result in the return-value encoding selected by ``return_rv``."""
        if self.return_rv:
            return self.exit_code
        if not self.ok:
            return None
        if self.output is not None:
            return self.output
        return True

    @classmethod
    def unresolved(cls, command: str, return_rv: bool = False) -> "ExecutionResult":
        """Result for a command that could not be resolved to run at all."""
        return cls(
            command=command,
            exit_code=None,
            failure=FailureKind.RESOLUTION,
            attempts=0,
            return_rv=return_rv,
        )
