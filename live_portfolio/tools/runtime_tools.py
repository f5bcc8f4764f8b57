"""Runtime and operations tools."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from live_portfolio.tools.common import dump

if TYPE_CHECKING:
    from live_portfolio.tools.registry import ToolServices


def register_runtime_tools(mcp: FastMCP, services: "ToolServices") -> None:
    @mcp.tool(description="Get live feed poller state: loading/refreshing/error, staleness and record counts.")
    async def get_live_data_status() -> str:
        return dump(services.session.status())

    @mcp.tool(description="Get per-feed fetch health: totals, failures, discarded stale responses, latency.")
    async def get_feed_health() -> str:
        return dump(asdict(services.metrics.snapshot()))
