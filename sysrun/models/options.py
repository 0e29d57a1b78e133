"""Execution option models."""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class ExecutionOptions:
    """Options controlling how a single command is executed.

    Output handling, in order of precedence:
        log_file: Append stdout and stderr to this file and write a
            plain-text transcript line before and after the run.
        capture_output: Send stdout and stderr to ``out_file`` (truncate,
            or append if ``append``). Without ``out_file`` an ephemeral temp
            file is used and its text becomes ``ExecutionResult.output``.
        verbose: When nothing above applies, inherit the caller's stdout and
            stderr instead of discarding them.

    Remote-only options (ignored for local execution):
        nohup, use_ssh_agent, no_strict_host_key_checking, ssh_opts,
        ssh_verbose, retry, sleep.
    """

    log_file: str | Path | None = None
    capture_output: bool = False
    out_file: str | Path | None = None
    append: bool = False
    chomp: bool = False
    verbose: bool = False
    timeout: float = 0
    return_rv: bool = False
    dry_run: bool = False
    # Remote execution
    nohup: bool = False
    use_ssh_agent: bool = False
    no_strict_host_key_checking: bool = False
    ssh_opts: str = ""
    ssh_verbose: bool = False
    retry: int = 0
    sleep: float | None = None

    def __post_init__(self) -> None:
        """Reject values that have no meaning."""
        if self.timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {self.timeout}")
        if self.retry < 0:
            raise ValueError(f"retry must be >= 0, got {self.retry}")
        if self.sleep is not None and self.sleep < 0:
            raise ValueError(f"sleep must be >= 0, got {self.sleep}")

    def replace(self, **changes: Any) -> "ExecutionOptions":
        """Return a copy with the given fields changed."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutionOptions":
        """Build options from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
