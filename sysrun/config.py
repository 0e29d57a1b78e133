"""Configuration management for sysrun."""

import logging
import os
from contextlib import suppress
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class Config:
    """sysrun configuration.

    Every field can be overridden from the environment (``SYSRUN_*``).
    """

    # Remote execution
    ssh_binary: str = "ssh"
    ssh_agent: bool = False  # Allow agent forwarding when a call asks for it
    ssh_hostkey_check: bool = True
    retry_sleep: float = 10.0
    # Local execution
    terminate_grace: float = 2.0  # Seconds between SIGTERM and SIGKILL
    command_timeout: float = 0.0  # Default timeout for MCP tool calls
    # Transport configuration
    transport: str = "http"  # "http" or "stdio"
    http_host: str = "0.0.0.0"
    http_port: int = 8000

    def __post_init__(self) -> None:
        """Apply environment variable overrides."""

        def get_env_float(key: str) -> float | None:
            if val := os.getenv(key):
                with suppress(ValueError):
                    return float(val)
                logger.warning("Invalid number for %s: %s, keeping default", key, val)
            return None

        def get_env_bool(key: str) -> bool | None:
            val = os.getenv(key)
            if val is None or not val.strip():
                return None
            return val.strip().lower() in _TRUE_VALUES

        if ssh_binary := os.getenv("SYSRUN_SSH_BINARY"):
            self.ssh_binary = ssh_binary

        flag = get_env_bool("SYSRUN_SSH_AGENT")
        if flag is not None:
            self.ssh_agent = flag

        flag = get_env_bool("SYSRUN_STRICT_HOST_KEY_CHECKING")
        if flag is not None:
            self.ssh_hostkey_check = flag

        for key, attr in (
            ("SYSRUN_RETRY_SLEEP", "retry_sleep"),
            ("SYSRUN_TERMINATE_GRACE", "terminate_grace"),
            ("SYSRUN_COMMAND_TIMEOUT", "command_timeout"),
        ):
            val = get_env_float(key)
            if val is None:
                continue
            if val < 0:
                logger.warning(
                    "%s must be >= 0, got %s. Using default: %s",
                    key,
                    val,
                    getattr(self, attr),
                )
            else:
                setattr(self, attr, val)

        transport = os.getenv("SYSRUN_TRANSPORT", "").lower()
        if transport in ("http", "stdio"):
            self.transport = transport

        if http_host := os.getenv("SYSRUN_HTTP_HOST"):
            self.http_host = http_host

        if http_port := os.getenv("SYSRUN_HTTP_PORT"):
            try:
                self.http_port = int(http_port)
            except ValueError:
                logger.warning(
                    "Invalid int for SYSRUN_HTTP_PORT: %s, using default %d",
                    http_port,
                    self.http_port,
                )

        logger.debug(
            "Config initialized: ssh_binary=%s, ssh_agent=%s, "
            "ssh_hostkey_check=%s, retry_sleep=%s, transport=%s",
            self.ssh_binary,
            self.ssh_agent,
            self.ssh_hostkey_check,
            self.retry_sleep,
            self.transport,
        )
