"""Portfolio resource definitions."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

if TYPE_CHECKING:
    from live_portfolio.tools.registry import ToolServices

VALUATION_URI = "portfolio://valuation"
LIVE_STATUS_URI = "portfolio://live-status"


def register_portfolio_resources(mcp: FastMCP, services: "ToolServices") -> None:
    @mcp.resource(
        VALUATION_URI,
        name="portfolio-valuation",
        description="Valuation of the current holdings against the latest price and fundamentals feeds.",
        mime_type="application/json",
    )
    def portfolio_valuation_resource() -> str:
        session = services.session
        if session.snapshot is None:
            raise ValueError("Portfolio resource not found. Upload a portfolio first.")
        return json.dumps(session.valuation().to_dict(), ensure_ascii=True)

    @mcp.resource(
        LIVE_STATUS_URI,
        name="live-data-status",
        description="Loading, refreshing and error state of the price and fundamentals pollers.",
        mime_type="application/json",
    )
    def live_status_resource() -> str:
        return json.dumps(services.session.status(), ensure_ascii=True)
