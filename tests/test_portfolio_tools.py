import asyncio
from types import SimpleNamespace

from mcp.server.fastmcp import FastMCP

from live_portfolio.config.settings import Settings
from live_portfolio.portfolio.indexes import build_fundamentals_index, build_price_index
from live_portfolio.portfolio.session import PortfolioSession
from live_portfolio.portfolio.valuation import value_portfolio
from live_portfolio.providers.models import FundamentalsRecord, Holding, PortfolioSnapshot, PriceRecord, SectorGroup
from live_portfolio.resources.portfolio_resources import register_portfolio_resources
from live_portfolio.runtime.monitoring import FeedMetrics
from live_portfolio.tools.portfolio_tools import render_summary
from live_portfolio.tools.registry import register_all_tools

TCS = Holding("Tata Consultancy Services", "TCS", "NSE", 3000.0, 10, 30000.0, 60.0, "Technology")
SBIN = Holding("State Bank of India", "SBIN", "BSE", 500.0, 40, 20000.0, 40.0, "Financials")
SNAPSHOT = PortfolioSnapshot(
    total_investment=50000.0,
    holdings=(TCS, SBIN),
    sectors=(SectorGroup("Technology", 30000.0, (TCS,)), SectorGroup("Financials", 20000.0, (SBIN,))),
)


class _NoopClient:
    def upload_portfolio(self, path):
        raise AssertionError("not expected")

    def fetch_prices(self, items):
        return []

    def fetch_fundamentals(self, items):
        return []


def test_register_all_tools_and_resources() -> None:
    mcp = FastMCP(name="test-live-portfolio")
    metrics = FeedMetrics()
    services = SimpleNamespace(session=PortfolioSession(_NoopClient(), Settings(), metrics=metrics), metrics=metrics)
    register_all_tools(mcp, services)
    register_portfolio_resources(mcp, services)
    names = {tool.name for tool in asyncio.run(mcp.list_tools())}
    assert {
        "upload_portfolio",
        "load_portfolio_json",
        "get_portfolio_valuation",
        "get_portfolio_summary",
        "refresh_live_data",
        "get_live_data_status",
        "get_feed_health",
    } <= names


def test_render_summary_marks_unknown_values() -> None:
    valuation = value_portfolio(
        SNAPSHOT,
        build_price_index([PriceRecord(symbol="TCS.NS", price=3500.0)]),
        build_fundamentals_index([FundamentalsRecord(symbol="SBIN", exchange="BOM", pe="9.80", latest_earnings="71.20")]),
    )
    status = {"updating": True, "prices": {"error": None}, "fundamentals": {"error": "Network error. Please try again."}}
    text = render_summary(valuation, status)
    assert "Total Investment: ₹50,000" in text
    assert "Present Value: ₹35,000" in text
    assert "Gain/Loss %: -30.00%" in text
    assert "Holdings without a live price: 1" in text
    assert "Technology - Invested ₹30,000" in text
    assert "qty 10 | buy ₹3,000 | 60.00% | invested ₹30,000 | CMP ₹3,500 | PV ₹35,000 | G/L ₹5,000 | P/E — | EPS —" in text
    assert "qty 40 | buy ₹500 | 40.00% | invested ₹20,000 | CMP —" in text
    assert "CMP — | PV — | G/L — | P/E 9.80 | EPS 71.20" in text
    assert "Updating live data..." in text
    assert "fundamentals feed: Network error. Please try again." in text
