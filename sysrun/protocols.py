"""Protocol interfaces for dependency inversion.

The runner depends on these instead of concrete classes, so tests can pass
recording fakes and the identity lookup can be replaced.
"""

from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from sysrun.models import ExecutionOptions, ExecutionResult


@runtime_checkable
class Executor(Protocol):
    """Something that runs one local process."""

    def execute(
        self,
        command: str | Sequence[str],
        options: ExecutionOptions | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        """Run the command and return its normalized result."""
        ...


@runtime_checkable
class IdentityResolver(Protocol):
    """Decides whether a host name refers to this machine."""

    def __call__(self, host: str) -> bool:
        """Return True for the local host."""
        ...
