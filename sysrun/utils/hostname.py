"""Hostname detection utilities for localhost identification."""

import socket

LOCALHOST = "localhost"


def get_server_hostname() -> str:
    """Get the short hostname of the machine running sysrun."""
    return socket.gethostname()


def get_server_fqdn() -> str:
    """Get the fully qualified domain name of the machine running sysrun."""
    return socket.getfqdn()


def is_local_host(target_host: str) -> bool:
    """Check if a target host refers to this machine.

    <parameters>
    target_host: Host name a command is addressed to
    </parameters>

    <returns>
    True if target is "localhost", the local hostname or the local FQDN.
    Both names are resolved on every call.
    </returns>
    """
    if not target_host:
        return False

    if target_host == LOCALHOST:
        return True

    return target_host in (get_server_hostname(), get_server_fqdn())
