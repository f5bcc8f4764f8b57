"""Domain tool registry entrypoint."""

from __future__ import annotations

from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP

from live_portfolio.config.settings import Settings
from live_portfolio.portfolio.session import PortfolioSession
from live_portfolio.providers.feed_client import FeedClient
from live_portfolio.runtime.monitoring import FeedMetrics
from live_portfolio.tools.portfolio_tools import register_portfolio_tools
from live_portfolio.tools.runtime_tools import register_runtime_tools


@dataclass
class ToolServices:
    session: PortfolioSession
    metrics: FeedMetrics


def build_tool_services(settings: Settings) -> ToolServices:
    metrics = FeedMetrics()
    client = FeedClient(settings.api_base_url, settings.request_timeout_seconds)
    return ToolServices(session=PortfolioSession(client, settings, metrics=metrics), metrics=metrics)


def register_all_tools(mcp: FastMCP, services: ToolServices) -> None:
    register_portfolio_tools(mcp, services)
    register_runtime_tools(mcp, services)
