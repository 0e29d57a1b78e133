"""Output redirection policy for executed commands.

The policy is decided once, before the process is spawned, and expressed as
file destinations for stdout and stderr rather than as shell redirections
appended to the command line. Any redirection written inside the command
itself is applied by the shell afterwards and still wins for that descriptor.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from sysrun.models import ExecutionOptions

CAPTURE_FILE_NAME = "cmd.out"


class StreamTarget(str, Enum):
    """Where a stream goes."""

    INHERIT = "inherit"
    DISCARD = "discard"
    FILE = "file"
    STDOUT = "stdout"  # stderr only: merged into stdout


@dataclass(frozen=True)
class Redirection:
    """Resolved destinations for stdout and stderr."""

    stdout: StreamTarget
    stderr: StreamTarget
    path: Path | None = None
    append: bool = False
    capture: bool = False  # path is a temp file whose text is returned

    def describe(self) -> str:
        """Render the equivalent shell redirection suffix, for logging."""
        if self.stdout is StreamTarget.FILE:
            op = ">>" if self.append else ">"
            return f" {op}{self.path} 2>&1"
        if self.stdout is StreamTarget.DISCARD:
            return " >/dev/null 2>&1"
        return ""


def decide_redirection(
    options: ExecutionOptions,
    temp_dir: str | Path | None = None,
) -> Redirection:
    """Decide how a command's output is redirected.

    Args:
        options: Execution options for the call
        temp_dir: Directory for the capture file when ``capture_output`` is
            set without ``out_file``

    Returns:
        Redirection to apply to the spawned process

    Raises:
        ValueError: If a temp capture is needed but no temp_dir was given
    """
    if options.log_file:
        return Redirection(
            stdout=StreamTarget.FILE,
            stderr=StreamTarget.STDOUT,
            path=Path(options.log_file),
            append=True,
        )

    if options.capture_output:
        if options.out_file:
            return Redirection(
                stdout=StreamTarget.FILE,
                stderr=StreamTarget.STDOUT,
                path=Path(options.out_file),
                append=options.append,
            )
        if temp_dir is None:
            raise ValueError("capture_output without out_file requires a temp_dir")
        return Redirection(
            stdout=StreamTarget.FILE,
            stderr=StreamTarget.STDOUT,
            path=Path(temp_dir) / CAPTURE_FILE_NAME,
            capture=True,
        )

    if options.verbose:
        return Redirection(stdout=StreamTarget.INHERIT, stderr=StreamTarget.INHERIT)

    return Redirection(stdout=StreamTarget.DISCARD, stderr=StreamTarget.DISCARD)


def needs_temp_capture(options: ExecutionOptions) -> bool:
    """True when output goes to an ephemeral file that must be read back."""
    return bool(options.capture_output and not options.out_file and not options.log_file)
