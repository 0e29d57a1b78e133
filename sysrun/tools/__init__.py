"""MCP tools for sysrun."""

from sysrun.tools.run import find_binary, find_remote_binary, run_command, ssh_login

__all__ = ["find_binary", "find_remote_binary", "run_command", "ssh_login"]
