"""MCP tools for running commands and probing binaries."""

import asyncio
import logging

from sysrun.models import ExecutionOptions, ExecutionResult
from sysrun.services import get_config, get_runner

logger = logging.getLogger(__name__)


def _format_result(host: str, result: ExecutionResult) -> str:
    """Format an execution result for display."""
    if result.dry_run:
        status = "dry run"
    elif result.timed_out:
        status = "timed out"
    elif result.exit_code is None:
        status = "failed to start"
    else:
        status = f"exit code {result.exit_code}"

    lines = [f"[{host}] {status} ({result.duration:.2f}s, attempts={result.attempts})"]
    if result.output:
        lines.append(result.output.rstrip("\n"))
    return "\n".join(lines)


async def run_command(
    host: str,
    command: str,
    timeout: float | None = None,
    capture_output: bool = True,
    retry: int = 0,
    sleep: float | None = None,
    nohup: bool = False,
    dry_run: bool = False,
) -> str:
    """Run a shell command on a host.

    Args:
        host: 'localhost', this machine's name, or an ssh destination.
        command: Shell command line to execute.
        timeout: Seconds before the command is killed (0 disables;
            default from SYSRUN_COMMAND_TIMEOUT).
        capture_output: Return combined stdout/stderr.
        retry: Remote only, retries after a failed first attempt.
        sleep: Remote only, seconds between retries.
        nohup: Remote only, detach the command and return immediately.
        dry_run: Log the command without running it.

    Examples:
        run_command("localhost", "uptime")
        run_command("web1", "systemctl restart nginx", retry=2, sleep=5)
        run_command("db1", "/opt/backup.sh", nohup=True)

    Returns:
        Status line followed by the captured output.
    """
    if not command.strip():
        return "Error: command must not be empty"

    try:
        options = ExecutionOptions(
            timeout=get_config().command_timeout if timeout is None else timeout,
            capture_output=capture_output,
            retry=retry,
            sleep=sleep,
            nohup=nohup,
            dry_run=dry_run,
        )
        result = await asyncio.to_thread(get_runner().run, host, command, options)
    except ValueError as e:
        return f"Error: {e}"

    return _format_result(host, result)


async def find_binary(name: str) -> str:
    """Find an executable on the sysrun host.

    Args:
        name: Binary name, e.g. "rsync".

    Returns:
        Full path of the binary, or a not-found message.
    """
    path = await asyncio.to_thread(get_runner().check_binary, name)
    if path is None:
        return f"Binary '{name}' not found"
    return path


async def find_remote_binary(host: str, name: str) -> str:
    """Check that a binary is executable on a remote host.

    Args:
        host: ssh destination.
        name: Binary name or absolute path.

    Returns:
        Message stating whether the binary is available.
    """
    try:
        result = await asyncio.to_thread(get_runner().check_remote_binary, host, name)
    except ValueError as e:
        return f"Error: {e}"

    if result.ok:
        return f"Binary '{name}' is executable on {host}"
    return f"Binary '{name}' is not available on {host}"


async def ssh_login(host: str) -> str:
    """Check that password-less ssh access to a host works.

    Args:
        host: ssh destination.

    Returns:
        Message stating whether login works.
    """
    try:
        ok = await asyncio.to_thread(get_runner().check_ssh_login, host)
    except ValueError as e:
        return f"Error: {e}"

    if ok:
        return f"Password-less SSH access to {host} is OK"
    return f"Password-less SSH access to {host} does not work"
