"""Command dispatch between local and remote execution."""

import logging

from sysrun.config import Config
from sysrun.models import ExecutionOptions, ExecutionResult
from sysrun.protocols import Executor, IdentityResolver
from sysrun.services.executor import CommandExecutor
from sysrun.services.locator import BinaryLocator
from sysrun.services.remote import RemoteExecutor
from sysrun.utils.hostname import is_local_host

logger = logging.getLogger(__name__)

DROP_CACHES_COMMAND = "echo 3 > /proc/sys/vm/drop_caches"


class Runner:
    """Runs commands on the local host or on remote hosts.

    Example:
        runner = Runner.from_config(Config())
        if runner.run("web1", "systemctl is-active nginx"):
            ...
        uptime = runner.run_cmd("uptime", ExecutionOptions(capture_output=True))
        print(uptime.output)
    """

    def __init__(
        self,
        executor: Executor | None = None,
        remote: RemoteExecutor | None = None,
        locator: BinaryLocator | None = None,
        is_local: IdentityResolver = is_local_host,
    ) -> None:
        self.executor = executor or CommandExecutor()
        self.remote = remote or RemoteExecutor(self.executor)
        self.locator = locator or BinaryLocator(self.remote)
        self._is_local = is_local

    @classmethod
    def from_config(cls, config: Config) -> "Runner":
        """Create a runner wired from configuration."""
        executor = CommandExecutor(terminate_grace=config.terminate_grace)
        remote = RemoteExecutor(
            executor,
            ssh_agent=config.ssh_agent,
            ssh_hostkey_check=config.ssh_hostkey_check,
            ssh_binary=config.ssh_binary,
            retry_sleep=config.retry_sleep,
        )
        return cls(executor=executor, remote=remote)

    def run(
        self,
        host: str,
        command: str,
        options: ExecutionOptions | None = None,
    ) -> ExecutionResult:
        """Run a command on ``host``, locally if it names this machine."""
        if self._is_local(host):
            return self.run_cmd(command, options)
        return self.run_remote_cmd(host, command, options)

    def run_cmd(
        self, command: str, options: ExecutionOptions | None = None
    ) -> ExecutionResult:
        """Run a command on the local host."""
        return self.executor.execute(command, options)

    def run_remote_cmd(
        self,
        host: str,
        command: str,
        options: ExecutionOptions | None = None,
    ) -> ExecutionResult:
        """Run a command on a remote host via ssh."""
        return self.remote.execute(host, command, options)

    def check_binary(self, name: str, path: str | None = None) -> str | None:
        """Return the local path of an executable, or None."""
        return self.locator.find_binary(name, path)

    def check_remote_binary(
        self,
        host: str,
        name: str,
        options: ExecutionOptions | None = None,
    ) -> ExecutionResult:
        """Check that a binary is executable on a remote host."""
        return self.locator.find_remote_binary(host, name, options)

    def check_ssh_login(
        self, host: str, options: ExecutionOptions | None = None
    ) -> bool:
        """Make sure password-less ssh access to ``host`` works."""
        if self.run_remote_cmd(host, "/bin/true", options):
            logger.debug("Password-less SSH access to %s is OK", host)
            return True
        logger.error("Password-less SSH access to %s does not work", host)
        return False

    def clear_caches(self, options: ExecutionOptions | None = None) -> bool:
        """Drop the Linux page, dentry and inode caches, then sync."""
        return bool(
            self.run_cmd(DROP_CACHES_COMMAND, options)
            and self.run_cmd("sync", options)
        )
