"""Row, sector and portfolio valuation derived from holdings and the live indexes.

Everything here is recomputed on demand; nothing is cached. A holding whose
price cannot be resolved keeps ``None`` for its own CMP, present value and
gain/loss, and contributes zero to rolled-up present values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from live_portfolio.portfolio.symbols import DEFAULT_RESOLVER, SymbolResolver, fundamentals_key
from live_portfolio.providers.models import (
    FundamentalsRecord,
    Holding,
    PortfolioSnapshot,
    PriceRecord,
    SectorGroup,
)

UNKNOWN = "—"


@dataclass(frozen=True)
class HoldingValuation:
    holding: Holding
    cmp: float | None
    present_value: float | None
    gain_loss: float | None
    pe: str | None = None
    latest_earnings: str | None = None
    resolved_key: str | None = None
    currency: str | None = None

    def to_dict(self) -> dict[str, Any]:
        holding = self.holding
        return {
            "particulars": holding.particulars,
            "symbol": holding.symbol,
            "exchange": holding.exchange,
            "sector": holding.sector,
            "purchasePrice": holding.purchase_price,
            "qty": holding.qty,
            "investment": holding.investment,
            "portfolioPct": holding.portfolio_pct,
            "cmp": self.cmp,
            "presentValue": self.present_value,
            "gainLoss": self.gain_loss,
            "pe": self.pe,
            "latestEarnings": self.latest_earnings,
            "resolvedSymbol": self.resolved_key,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class SectorValuation:
    sector: str
    total_investment: float
    present_value: float
    gain_loss: float
    rows: tuple[HoldingValuation, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "sector": self.sector,
            "totalInvestment": self.total_investment,
            "presentValue": self.present_value,
            "gainLoss": self.gain_loss,
            "holdings": [row.to_dict() for row in self.rows],
        }


@dataclass(frozen=True)
class PortfolioTotals:
    total_investment: float
    present_value: float
    gain_loss: float
    gain_loss_pct: float | None
    priced_holdings: int = 0
    unpriced_holdings: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalInvestment": self.total_investment,
            "presentValue": self.present_value,
            "gainLoss": self.gain_loss,
            "gainLossPct": format_gain_loss_pct(self.gain_loss_pct),
            "pricedHoldings": self.priced_holdings,
            "unpricedHoldings": self.unpriced_holdings,
        }


@dataclass(frozen=True)
class PortfolioValuation:
    totals: PortfolioTotals
    rows: tuple[HoldingValuation, ...] = ()
    sectors: tuple[SectorValuation, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "totals": self.totals.to_dict(),
            "holdings": [row.to_dict() for row in self.rows],
            "sectors": [sector.to_dict() for sector in self.sectors],
        }


def format_gain_loss_pct(value: float | None) -> str:
    if value is None:
        return UNKNOWN
    return f"{value:.2f}%"


def current_price(record: PriceRecord | None) -> float | None:
    if record is None or not record.ok:
        return None
    return record.price


def value_holding(
    holding: Holding,
    price_index: Mapping[str, PriceRecord],
    fundamentals_index: Mapping[str, FundamentalsRecord],
    resolver: SymbolResolver | None = None,
) -> HoldingValuation:
    resolver = resolver or DEFAULT_RESOLVER
    key = resolver.resolve_key(holding, price_index)
    record = price_index[key] if key is not None else None
    cmp = current_price(record)
    present_value = cmp * holding.qty if cmp is not None else None
    gain_loss = present_value - holding.investment if present_value is not None else None
    fundamentals = fundamentals_index.get(fundamentals_key(holding.symbol, holding.exchange))
    return HoldingValuation(
        holding=holding,
        cmp=cmp,
        present_value=present_value,
        gain_loss=gain_loss,
        pe=fundamentals.pe if fundamentals else None,
        latest_earnings=fundamentals.latest_earnings if fundamentals else None,
        resolved_key=key,
        currency=record.currency if record else None,
    )


def present_value_total(rows: Iterable[HoldingValuation]) -> float:
    """Sum of present values with unresolved prices counted as zero."""
    return sum(((row.cmp or 0.0) * row.holding.qty for row in rows), 0.0)


def gain_loss_percent(present_value: float, total_investment: float) -> float | None:
    if not total_investment:
        return None
    return (present_value - total_investment) / total_investment * 100.0


def value_sector(
    group: SectorGroup,
    price_index: Mapping[str, PriceRecord],
    fundamentals_index: Mapping[str, FundamentalsRecord],
    resolver: SymbolResolver | None = None,
) -> SectorValuation:
    rows = tuple(value_holding(holding, price_index, fundamentals_index, resolver) for holding in group.holdings)
    present_value = present_value_total(rows)
    return SectorValuation(
        sector=group.sector,
        total_investment=group.total_investment,
        present_value=present_value,
        gain_loss=present_value - sum(row.holding.investment for row in rows),
        rows=rows,
    )


def value_portfolio(
    snapshot: PortfolioSnapshot | None,
    price_index: Mapping[str, PriceRecord] | None = None,
    fundamentals_index: Mapping[str, FundamentalsRecord] | None = None,
    resolver: SymbolResolver | None = None,
) -> PortfolioValuation:
    """Value every holding and roll the results up per sector and portfolio.

    Either index may be empty or missing (feed still loading, failed or
    lagging the other); affected rows simply read as unknown.
    """
    price_index = price_index or {}
    fundamentals_index = fundamentals_index or {}
    if snapshot is None:
        return PortfolioValuation(totals=PortfolioTotals(0.0, 0.0, 0.0, None))

    rows = tuple(value_holding(holding, price_index, fundamentals_index, resolver) for holding in snapshot.holdings)
    sectors = tuple(value_sector(group, price_index, fundamentals_index, resolver) for group in snapshot.sectors)
    present_value = present_value_total(rows)
    priced = sum(1 for row in rows if row.cmp is not None)
    totals = PortfolioTotals(
        total_investment=snapshot.total_investment,
        present_value=present_value,
        gain_loss=present_value - sum(row.holding.investment for row in rows),
        gain_loss_pct=gain_loss_percent(present_value, snapshot.total_investment),
        priced_holdings=priced,
        unpriced_holdings=len(rows) - priced,
    )
    return PortfolioValuation(totals=totals, rows=rows, sectors=sectors)
