"""Remote command execution through the system ssh client."""

import logging
import os
import time
from collections.abc import Callable, Mapping

from sysrun.models import ExecutionOptions, ExecutionResult
from sysrun.protocols import Executor
from sysrun.utils.shell import split_ssh_opts

logger = logging.getLogger(__name__)

AGENT_ENV_VARS = ("SSH_AGENT_PID", "SSH_AUTH_SOCK")
HOSTKEY_BYPASS_OPTS = ("-oStrictHostKeyChecking=no", "-oUserKnownHostsFile=/dev/null")


def wrap_nohup(command: str) -> str:
    """Wrap a command so it keeps running after the ssh session ends.

    Output and input are redirected unless the command already does so,
    otherwise ssh would wait for the detached process to close them.
    """
    command = f"nohup {command}"
    if ">" not in command:
        command += " >/dev/null 2>/dev/null"
    if "<" not in command:
        command += " </dev/null"
    return command + " &"


def build_ssh_command(
    host: str,
    command: str,
    options: ExecutionOptions,
    *,
    hostkey_check: bool = True,
    ssh_binary: str = "ssh",
) -> list[str]:
    """Assemble the ssh argument vector for a remote command.

    Order: batch mode, host key bypass (if requested or host key checking is
    disabled), exactly one of ``-v``/``-q``, caller ssh options, host, and the
    remote command as the last argument. No local shell is involved, so the
    command reaches the remote login shell exactly as written.

    Raises:
        ValueError: If ``options.ssh_opts`` cannot be parsed
    """
    if options.nohup:
        command = wrap_nohup(command)

    argv = [ssh_binary, "-oBatchMode=yes"]
    if options.no_strict_host_key_checking or not hostkey_check:
        argv.extend(HOSTKEY_BYPASS_OPTS)
    argv.append("-v" if options.ssh_verbose else "-q")
    argv.extend(split_ssh_opts(options.ssh_opts))
    argv.append(host)
    argv.append(command)
    return argv


def scrub_agent_env(
    base: Mapping[str, str] | None = None,
    keep_agent: bool = False,
) -> dict[str, str]:
    """Return a copy of the environment for the ssh child.

    The agent variables are dropped unless ``keep_agent`` is set, so that a
    detached remote process never holds on to the caller's transient agent
    socket. ``base`` (default ``os.environ``) is never modified.
    """
    env = dict(os.environ if base is None else base)
    if not keep_agent:
        for var in AGENT_ENV_VARS:
            env.pop(var, None)
    return env


class RemoteExecutor:
    """Runs commands on remote hosts via ssh, with retry."""

    def __init__(
        self,
        executor: Executor,
        *,
        ssh_agent: bool = False,
        ssh_hostkey_check: bool = True,
        ssh_binary: str = "ssh",
        retry_sleep: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the remote executor.

        Args:
            executor: Local executor that spawns the ssh client
            ssh_agent: Allow agent forwarding for calls with use_ssh_agent
            ssh_hostkey_check: When False, always bypass host key checks
            ssh_binary: ssh client to invoke
            retry_sleep: Pause between retries when options.sleep is unset
            sleep: Blocking sleep function (injectable for tests)
        """
        self.executor = executor
        self.ssh_agent = ssh_agent
        self.ssh_hostkey_check = ssh_hostkey_check
        self.ssh_binary = ssh_binary
        self.retry_sleep = retry_sleep
        self._sleep = sleep

    def execute(
        self,
        host: str,
        command: str,
        options: ExecutionOptions | None = None,
    ) -> ExecutionResult:
        """Run a command on a remote host.

        Args:
            host: ssh destination (name, alias or user@host)
            command: Shell command line to run remotely
            options: Execution options; timeout, capture etc. apply to the
                local ssh process

        Returns:
            Result of the first successful attempt, or of the last attempt
            when every retry failed
        """
        if not host:
            raise ValueError("host must not be empty")
        options = options or ExecutionOptions()

        argv = build_ssh_command(
            host,
            command,
            options,
            hostkey_check=self.ssh_hostkey_check,
            ssh_binary=self.ssh_binary,
        )
        env = scrub_agent_env(keep_agent=options.use_ssh_agent and self.ssh_agent)

        result = self.executor.execute(argv, options, env=env)
        if result.ok:
            logger.debug("Command successful")
            return result

        if not options.retry:
            logger.info("Command failed. Without retry.")
            return result

        logger.info("Command failed on %s. Retrying.", host)
        sleep = self.retry_sleep if options.sleep is None else options.sleep
        for attempt in range(1, options.retry + 1):
            self._sleep(sleep)
            logger.info("Retry %d/%d on %s", attempt, options.retry, host)
            result = self.executor.execute(argv, options, env=env)
            result.attempts = attempt + 1
            if result.ok:
                logger.debug("Command successful")
                return result

        logger.info(
            "Command failed on %s. After %d retries.", host, options.retry
        )
        return result
