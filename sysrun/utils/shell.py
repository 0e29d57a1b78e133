"""Shell command safety utilities."""

import logging
import shlex

logger = logging.getLogger(__name__)


def quote_arg(arg: str) -> str:
    """Safely quote a shell argument.

    Args:
        arg: Argument to quote

    Returns:
        Shell-safe quoted argument
    """
    return shlex.quote(arg)


def split_ssh_opts(ssh_opts: str) -> list[str]:
    """Split caller-supplied ssh options into argv items.

    Args:
        ssh_opts: Option string such as ``"-p 2222 -oConnectTimeout=5"``

    Returns:
        List of arguments, empty for a blank string

    Raises:
        ValueError: If the string has unbalanced quotes
    """
    ssh_opts = ssh_opts.strip()
    if not ssh_opts:
        return []
    try:
        return shlex.split(ssh_opts)
    except ValueError as e:
        logger.error("Cannot parse ssh options %r: %s", ssh_opts, e)
        raise ValueError(f"Invalid ssh options: {ssh_opts!r}") from e
