"""Portfolio-domain MCP tools."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from mcp.server.fastmcp import FastMCP

from live_portfolio.lib.formatters import UNKNOWN, format_inr, format_response, line_money, line_text
from live_portfolio.portfolio.session import UploadError
from live_portfolio.portfolio.valuation import PortfolioValuation, format_gain_loss_pct
from live_portfolio.providers.feed_client import parse_snapshot
from live_portfolio.providers.http import FeedError
from live_portfolio.providers.models import PortfolioSnapshot
from live_portfolio.tools.common import dump, error_payload

if TYPE_CHECKING:
    from live_portfolio.tools.registry import ToolServices


def _snapshot_summary(snapshot: PortfolioSnapshot) -> dict[str, Any]:
    return {
        "ok": True,
        "holdings": len(snapshot.holdings),
        "sectors": [group.sector for group in snapshot.sectors],
        "totalInvestment": snapshot.total_investment,
        "ts": snapshot.ts,
    }


def _status_warning(status: dict[str, Any]) -> str | None:
    notes: list[str] = []
    if status.get("updating"):
        notes.append("Updating live data...")
    for feed in ("prices", "fundamentals"):
        error = (status.get(feed) or {}).get("error")
        if error:
            notes.append(f"{feed} feed: {error}")
    return " ".join(notes) or None


def render_summary(valuation: PortfolioValuation, status: dict[str, Any]) -> str:
    totals = valuation.totals
    lines = [
        line_money("Total Investment", totals.total_investment),
        line_money("Present Value", totals.present_value),
        line_money("Net Gain/Loss", totals.gain_loss),
        line_text("Gain/Loss %", format_gain_loss_pct(totals.gain_loss_pct)),
    ]
    if totals.unpriced_holdings:
        lines.append(f"Holdings without a live price: {totals.unpriced_holdings}")
    for sector in valuation.sectors:
        lines.append("")
        lines.append(f"{sector.sector} - Invested {format_inr(sector.total_investment)}")
        for row in sector.rows:
            holding = row.holding
            lines.append(
                " | ".join(
                    [
                        holding.particulars,
                        holding.exchange,
                        f"qty {holding.qty:g}",
                        f"buy {format_inr(holding.purchase_price)}",
                        f"{holding.portfolio_pct:.2f}%",
                        f"invested {format_inr(holding.investment)}",
                        f"CMP {format_inr(row.cmp)}",
                        f"PV {format_inr(row.present_value)}",
                        f"G/L {format_inr(row.gain_loss)}",
                        f"P/E {row.pe or UNKNOWN}",
                        f"EPS {row.latest_earnings or UNKNOWN}",
                    ]
                )
            )
    return format_response(
        title="Portfolio valuation",
        lines=lines,
        warning=_status_warning(status),
    )


def register_portfolio_tools(mcp: FastMCP, services: ToolServices) -> None:
    session = services.session

    @mcp.tool(description="Upload a holdings spreadsheet (.xlsx/.xls) and start live price and fundamentals polling.")
    async def upload_portfolio(file_path: str) -> str:
        try:
            snapshot = await session.upload(file_path)
        except UploadError as error:
            return dump(error_payload("upload_error", str(error)))
        return dump(_snapshot_summary(snapshot))

    @mcp.tool(description="Load an already-normalized holdings snapshot (ingestion service JSON) and start polling.")
    async def load_portfolio_json(snapshot_json: str) -> str:
        try:
            snapshot = parse_snapshot(json.loads(snapshot_json))
        except json.JSONDecodeError:
            return dump(error_payload("validation_error", "Snapshot must be valid JSON."))
        except FeedError as error:
            return dump(error_payload("validation_error", error.message))
        session.load_snapshot(snapshot)
        return dump(_snapshot_summary(snapshot))

    @mcp.tool(description="Return the current live valuation per holding, per sector and for the whole portfolio as JSON.")
    async def get_portfolio_valuation() -> str:
        if session.snapshot is None:
            return dump(error_payload("no_portfolio", "Upload a portfolio first."))
        payload = {"ok": True, **session.valuation().to_dict(), "live": session.status()}
        return dump(payload)

    @mcp.tool(description="Return a readable summary of the current live valuation.")
    async def get_portfolio_summary() -> str:
        if session.snapshot is None:
            return "No portfolio loaded. Upload a holdings spreadsheet first."
        return render_summary(session.valuation(), session.status())

    @mcp.tool(description="Re-fetch live prices and fundamentals now and return poller status.")
    async def refresh_live_data() -> str:
        return dump(await session.refresh())
