"""Binary lookup on the local host and on remote hosts."""

import logging
import os
from collections.abc import Sequence

from sysrun.models import ExecutionOptions, ExecutionResult
from sysrun.services.remote import RemoteExecutor
from sysrun.utils.shell import quote_arg

logger = logging.getLogger(__name__)

# Searched after PATH, in this order, in case PATH is incomplete.
FALLBACK_DIRS: tuple[str, ...] = (
    "/sbin",
    "/bin",
    "/usr/sbin",
    "/usr/bin",
    "/usr/local/sbin",
    "/usr/local/bin",
)

REMOTE_LOOKUP_RETRIES = 2


class BinaryLocator:
    """Finds executables locally (pure filesystem search) or remotely."""

    def __init__(
        self,
        remote: RemoteExecutor,
        fallback_dirs: Sequence[str] = FALLBACK_DIRS,
    ) -> None:
        self.remote = remote
        self.fallback_dirs = tuple(fallback_dirs)

    def search_path(self, path: str | None = None) -> list[str]:
        """Directories searched, in order."""
        if path is None:
            path = os.environ.get("PATH", "")
        dirs = [d for d in path.split(os.pathsep) if d]
        return dirs + list(self.fallback_dirs)

    def find_binary(self, name: str, path: str | None = None) -> str | None:
        """Return the first executable ``dir/name`` on the search path.

        Args:
            name: Unqualified binary name
            path: Search path to use instead of ``$PATH``

        Returns:
            Full path of the binary, or None if not found
        """
        dirs = self.search_path(path)
        for directory in dirs:
            location = os.path.join(directory, name)
            if os.path.isfile(location) and os.access(location, os.X_OK):
                logger.debug("Found binary %s at %s", name, location)
                return location

        logger.info("Binary %s not found in path %s", name, os.pathsep.join(dirs))
        return None

    def find_remote_binary(
        self,
        host: str,
        name: str,
        options: ExecutionOptions | None = None,
    ) -> ExecutionResult:
        """Check that a binary exists and is executable on a remote host.

        A bare name is resolved with ``which`` first (captured). Both the lookup
        and the ``test -x`` probe are retried ``REMOTE_LOOKUP_RETRIES`` times.

        Returns:
            Result of the ``test -x`` probe, or a RESOLUTION failure when the
            name could not be resolved to an absolute path
        """
        options = options or ExecutionOptions()
        binary = name

        if not binary.startswith("/"):
            lookup = self.remote.execute(
                host,
                f"which {quote_arg(name)}",
                options.replace(
                    capture_output=True,
                    out_file=None,
                    log_file=None,
                    retry=REMOTE_LOOKUP_RETRIES,
                    chomp=True,
                ),
            )
            binary = (lookup.output or "").strip() if lookup.ok else ""

        if not binary.startswith("/"):
            logger.warning("Command %s not found on host %s!", name, host)
            return ExecutionResult.unresolved(
                f"which {name}", return_rv=options.return_rv
            )

        return self.remote.execute(
            host,
            f"test -x {quote_arg(binary)}",
            options.replace(capture_output=False, retry=REMOTE_LOOKUP_RETRIES),
        )
