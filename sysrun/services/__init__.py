"""Services for sysrun."""

from sysrun.services.executor import CommandExecutor
from sysrun.services.locator import FALLBACK_DIRS, BinaryLocator
from sysrun.services.output import (
    Redirection,
    StreamTarget,
    decide_redirection,
)
from sysrun.services.remote import (
    RemoteExecutor,
    build_ssh_command,
    scrub_agent_env,
    wrap_nohup,
)
from sysrun.services.runner import Runner
from sysrun.services.state import (
    get_config,
    get_runner,
    reset_state,
    set_config,
    set_runner,
)

__all__ = [
    "BinaryLocator",
    "build_ssh_command",
    "CommandExecutor",
    "decide_redirection",
    "FALLBACK_DIRS",
    "get_config",
    "get_runner",
    "Redirection",
    "RemoteExecutor",
    "reset_state",
    "Runner",
    "scrub_agent_env",
    "set_config",
    "set_runner",
    "StreamTarget",
    "wrap_nohup",
]
