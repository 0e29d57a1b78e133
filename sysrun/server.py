"""sysrun FastMCP server.

Thin wrapper that exposes the runner as MCP tools. All command handling is
delegated to the tools/ and services/ modules.
"""

import logging
import os
import sys

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from sysrun.tools import find_binary, find_remote_binary, run_command, ssh_login
from sysrun.utils.console import ColorfulFormatter


def _configure_logging() -> None:
    """Configure colorful logging for the sysrun package.

    Called at module load time so logging is set up before any loggers are
    used, regardless of how the server is started.
    """
    log_level = os.getenv("SYSRUN_LOG_LEVEL", "INFO").upper()
    use_colors = os.getenv("SYSRUN_LOG_COLORS", "true").lower() != "false"

    # Disable colors if not a TTY
    if not sys.stderr.isatty():
        use_colors = False

    sysrun_logger = logging.getLogger("sysrun")
    sysrun_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Only add handler if not already configured
    if not sysrun_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        sysrun_logger.addHandler(handler)
        sysrun_logger.propagate = False

    for noisy_logger in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "httpcore",
        "fastmcp",
        "starlette",
        "anyio",
    ]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


_configure_logging()

logger = logging.getLogger(__name__)


def create_server() -> FastMCP:
    """Create the MCP server with all tools registered.

    Returns:
        Configured FastMCP server instance
    """
    server = FastMCP("sysrun")

    server.tool()(run_command)
    server.tool()(find_binary)
    server.tool()(find_remote_binary)
    server.tool()(ssh_login)

    # Health check endpoint for HTTP transport
    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server


# Default server instance
mcp = create_server()
