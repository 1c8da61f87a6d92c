"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.server.fastmcp import FastMCP

from ocean_log_monitor.core.config import (
    DISPLAY_TZ_ENV,
    INTERVAL_ENV,
    LOG_DIR_ENV,
    LOG_TZ_ENV,
    STATE_FILE_ENV,
)
from ocean_log_monitor.core.engine import MonitorEngine

SAMPLE_MARKER_LINE = (
    "[10:00:00.000 N] [Ocean Trip] Next boat is in 15 minutes. Passing the time until then."
)


def register_resources(mcp: FastMCP, get_engine: Callable[[], MonitorEngine]) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://ocean-log-monitor/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs and settings."""
        return (
            "Resources:\n"
            "- app://ocean-log-monitor/help\n"
            "- app://ocean-log-monitor/config\n"
            "- app://ocean-log-monitor/state\n"
            "- app://ocean-log-monitor/examples/marker-line\n"
            "\nEnvironment:\n"
            f"- {LOG_DIR_ENV}: log directory\n"
            f"- {INTERVAL_ENV}: minutes between checks (1-60)\n"
            f"- {STATE_FILE_ENV}: JSON state file\n"
            f"- {LOG_TZ_ENV}: timezone of the log timestamps\n"
            f"- {DISPLAY_TZ_ENV}: timezone used to display the next boat\n"
        )

    @mcp.resource("app://ocean-log-monitor/examples/marker-line")
    def marker_line() -> str:
        """Return a line in the format the monitor looks for."""
        return SAMPLE_MARKER_LINE + "\n"

    @mcp.resource("app://ocean-log-monitor/config")
    def config_resource() -> dict[str, Any]:
        """Return the active configuration."""
        return get_engine().config.model_dump()

    @mcp.resource("app://ocean-log-monitor/state")
    def state_resource() -> dict[str, Any]:
        """Return the persisted monitor state."""
        return get_engine().state.model_dump(mode="json")
