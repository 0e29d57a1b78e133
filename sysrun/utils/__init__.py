"""Utilities for sysrun."""

from sysrun.utils.console import ColorfulFormatter
from sysrun.utils.hostname import get_server_fqdn, get_server_hostname, is_local_host
from sysrun.utils.shell import quote_arg, split_ssh_opts
from sysrun.utils.transcript import append_text, slurp, transcript_line

__all__ = [
    "append_text",
    "ColorfulFormatter",
    "get_server_fqdn",
    "get_server_hostname",
    "is_local_host",
    "quote_arg",
    "slurp",
    "split_ssh_opts",
    "transcript_line",
]
