"""MCP server entrypoint (stdio transport).

This module wires together:
- Lifespan: the monitor engine runs for as long as the server does
- Tools: manual check, status, reset and configuration
- Resources: help text, current config/state and a sample marker line

Run locally (stdio):
    python -m ocean_log_monitor.server.monitor_server
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import FastMCP

from ocean_log_monitor.core.config import configure_logging
from ocean_log_monitor.core.engine import MonitorEngine, build_engine
from ocean_log_monitor.resources.registry import register_resources
from ocean_log_monitor.tools.monitor import (
    configure_impl,
    force_check_impl,
    reset_impl,
    status_impl,
)

LOGGER = logging.getLogger(__name__)

_engine: MonitorEngine | None = None


def get_engine() -> MonitorEngine:
    """Return the running engine (available inside the server lifespan)."""
    if _engine is None:
        raise RuntimeError("Monitor engine is not running")
    return _engine


@asynccontextmanager
async def lifespan(_server: FastMCP) -> AsyncIterator[MonitorEngine]:
    """Start the engine with the server and stop it on shutdown."""
    global _engine
    engine = build_engine()
    _engine = engine
    try:
        async with engine:
            yield engine
    finally:
        _engine = None


mcp = FastMCP("ocean-log-monitor", json_response=True, lifespan=lifespan)

register_resources(mcp, get_engine)


@mcp.tool()
async def force_check() -> dict[str, Any]:
    """Scan the log directory now and report the latest ocean trip entry.

    Runs even when monitoring is disabled or a command is already pending.
    A pending command is never scheduled twice.

    Returns
    -------
    dict:
        {"outcome": str, "latest": dict | None, "is_new": bool, "status": dict, ...}
    """
    return await force_check_impl(get_engine())


@mcp.tool()
def monitor_status() -> dict[str, Any]:
    """Return monitoring state, pending command and the next boat countdown."""
    return status_impl(get_engine())


@mcp.tool()
def reset_baseline() -> dict[str, Any]:
    """Forget the last processed entry so the latest one counts as new again."""
    return reset_impl(get_engine())


@mcp.tool()
def configure_monitor(
    enabled: bool | None = None,
    interval_minutes: int | None = None,
    action_command: str | None = None,
    pre_event_action_command: str | None = None,
    source_directory: str | None = None,
    delete_old_files: bool | None = None,
) -> dict[str, Any]:
    """Change monitor settings. Omitted parameters keep their current value.

    Parameters
    ----------
    enabled:
        Turn periodic checks on or off (manual checks always work).
    interval_minutes:
        Minutes between checks; clamped to 1..60.
    action_command:
        Run one minute after a new trip is detected. '/echo <text>' only
        records a notice; anything else runs as a shell command.
    pre_event_action_command:
        Run once, one minute before the boat arrives.
    source_directory:
        Directory holding the *.txt logs.
    delete_old_files:
        Delete scanned logs other than the one holding the last processed entry.
    """
    return configure_impl(
        get_engine(),
        enabled=enabled,
        interval_minutes=interval_minutes,
        action_command=action_command,
        pre_event_action_command=pre_event_action_command,
        source_directory=source_directory,
        delete_old_files=delete_old_files,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
