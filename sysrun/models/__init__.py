"""Data models for sysrun."""

from sysrun.models.options import ExecutionOptions
from sysrun.models.result import TIMEOUT_EXIT_CODE, ExecutionResult, FailureKind

__all__ = [
    "ExecutionOptions",
    "ExecutionResult",
    "FailureKind",
    "TIMEOUT_EXIT_CODE",
]
