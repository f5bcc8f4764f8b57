import pytest

from live_portfolio.portfolio.indexes import build_fundamentals_index, build_price_index
from live_portfolio.portfolio.valuation import (
    gain_loss_percent,
    value_holding,
    value_portfolio,
)
from live_portfolio.providers.models import (
    FundamentalsRecord,
    Holding,
    PortfolioSnapshot,
    PriceRecord,
    SectorGroup,
)

TCS = Holding(
    particulars="Tata Consultancy Services",
    symbol="TCS",
    exchange="NSE",
    purchase_price=3000.0,
    qty=10,
    investment=30000.0,
    portfolio_pct=60.0,
    sector="Technology",
)
SBIN = Holding(
    particulars="State Bank of India",
    symbol="SBIN",
    exchange="BSE",
    purchase_price=500.0,
    qty=40,
    investment=20000.0,
    portfolio_pct=40.0,
    sector="Financials",
)


def _snapshot(*holdings: Holding) -> PortfolioSnapshot:
    groups: dict[str, list[Holding]] = {}
    for holding in holdings:
        groups.setdefault(holding.sector, []).append(holding)
    return PortfolioSnapshot(
        total_investment=sum(h.investment for h in holdings),
        holdings=holdings,
        sectors=tuple(
            SectorGroup(sector=name, total_investment=sum(h.investment for h in rows), holdings=tuple(rows))
            for name, rows in groups.items()
        ),
    )


def test_resolved_row_scenario() -> None:
    index = build_price_index([PriceRecord(symbol="TCS.NS", price=3500.0, currency="INR", source="yahoo")])
    row = value_holding(TCS, index, {})
    assert row.cmp == 3500.0
    assert row.present_value == 35000.0
    assert row.gain_loss == 5000.0
    assert row.resolved_key == "TCS.NS"
    assert row.currency == "INR"


def test_unresolved_row_is_unknown_and_contributes_zero() -> None:
    index = build_price_index([PriceRecord(symbol="TCS.NS", price=3500.0)])
    valuation = value_portfolio(_snapshot(TCS, SBIN), index, {})
    sbin_row = valuation.rows[1]
    assert sbin_row.cmp is None
    assert sbin_row.present_value is None
    assert sbin_row.gain_loss is None
    assert valuation.totals.present_value == 35000.0
    assert valuation.totals.gain_loss == 35000.0 - 50000.0
    assert valuation.totals.priced_holdings == 1
    assert valuation.totals.unpriced_holdings == 1


def test_failed_symbol_record_yields_unknown_price() -> None:
    index = build_price_index([PriceRecord(symbol="TCS.NS", price=3500.0, ok=False)])
    row = value_holding(TCS, index, {})
    assert row.cmp is None
    assert row.present_value is None


def test_null_price_record_yields_unknown_price() -> None:
    index = build_price_index([PriceRecord(symbol="TCS.NS", price=None)])
    assert value_holding(TCS, index, {}).cmp is None


def test_fundamentals_join_via_bom_alias() -> None:
    fundamentals = build_fundamentals_index(
        [FundamentalsRecord(symbol="SBIN", exchange="BOM", pe="9.80", latest_earnings="71.20")]
    )
    row = value_holding(SBIN, {}, fundamentals)
    assert row.pe == "9.80"
    assert row.latest_earnings == "71.20"
    assert row.cmp is None


def test_missing_fundamentals_are_unknown() -> None:
    row = value_holding(TCS, build_price_index([PriceRecord(symbol="TCS.NS", price=3500.0)]), {})
    assert row.pe is None
    assert row.latest_earnings is None


def test_prices_ahead_of_fundamentals_and_vice_versa() -> None:
    snapshot = _snapshot(TCS)
    prices = build_price_index([PriceRecord(symbol="TCS.NS", price=3300.0)])
    fundamentals = build_fundamentals_index([FundamentalsRecord(symbol="TCS", exchange="NSE", pe="31.0")])

    only_prices = value_portfolio(snapshot, prices, None)
    assert only_prices.rows[0].cmp == 3300.0
    assert only_prices.rows[0].pe is None

    only_fundamentals = value_portfolio(snapshot, None, fundamentals)
    assert only_fundamentals.rows[0].cmp is None
    assert only_fundamentals.rows[0].pe == "31.0"


def test_portfolio_totals_and_percent() -> None:
    index = build_price_index(
        [
            PriceRecord(symbol="TCS.NS", price=3500.0),
            PriceRecord(symbol="SBIN.BO", price=600.0),
        ]
    )
    valuation = value_portfolio(_snapshot(TCS, SBIN), index, {})
    totals = valuation.totals
    assert totals.present_value == 35000.0 + 24000.0
    assert totals.gain_loss == 9000.0
    assert totals.gain_loss_pct == pytest.approx(18.0)
    assert totals.to_dict()["gainLossPct"] == "18.00%"


def test_sector_rollup_uses_upstream_investment_and_row_sums() -> None:
    index = build_price_index([PriceRecord(symbol="TCS.NS", price=3500.0)])
    valuation = value_portfolio(_snapshot(TCS, SBIN), index, {})
    by_sector = {sector.sector: sector for sector in valuation.sectors}
    assert [sector.sector for sector in valuation.sectors] == ["Technology", "Financials"]
    assert by_sector["Technology"].total_investment == 30000.0
    assert by_sector["Technology"].present_value == 35000.0
    assert by_sector["Technology"].gain_loss == 5000.0
    assert by_sector["Financials"].present_value == 0.0
    assert by_sector["Financials"].rows[0].cmp is None


def test_duplicate_lots_are_valued_as_separate_rows() -> None:
    second_lot = Holding(
        particulars="TCS (lot 2)",
        symbol="TCS",
        exchange="NSE",
        purchase_price=3200.0,
        qty=5,
        investment=16000.0,
        sector="Technology",
    )
    index = build_price_index([PriceRecord(symbol="TCS.NS", price=3500.0)])
    valuation = value_portfolio(_snapshot(TCS, second_lot), index, {})
    assert [row.present_value for row in valuation.rows] == [35000.0, 17500.0]
    assert [row.gain_loss for row in valuation.rows] == [5000.0, 1500.0]
    assert valuation.totals.present_value == 52500.0


def test_empty_portfolio_totals() -> None:
    valuation = value_portfolio(PortfolioSnapshot(total_investment=0.0), {}, {})
    payload = valuation.to_dict()
    assert payload["totals"]["presentValue"] == 0.0
    assert payload["totals"]["gainLoss"] == 0.0
    assert payload["totals"]["gainLossPct"] == "—"
    assert payload["holdings"] == []


def test_zero_total_investment_percent_is_dash() -> None:
    free = Holding(particulars="Bonus shares", symbol="ITC", exchange="NSE", qty=10, investment=0.0)
    index = build_price_index([PriceRecord(symbol="ITC.NS", price=450.0)])
    valuation = value_portfolio(PortfolioSnapshot(total_investment=0.0, holdings=(free,)), index, {})
    assert gain_loss_percent(4500.0, 0.0) is None
    assert valuation.totals.gain_loss_pct is None
    assert valuation.totals.to_dict()["gainLossPct"] == "—"


def test_no_snapshot_yields_empty_valuation() -> None:
    valuation = value_portfolio(None)
    assert valuation.rows == ()
    assert valuation.totals.to_dict()["gainLossPct"] == "—"
