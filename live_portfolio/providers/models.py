"""Normalized data models shared across the feed client, indexes and valuation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

FeedName = Literal["upload", "prices", "fundamentals"]


@dataclass(frozen=True)
class FeedItem:
    symbol: str
    exchange: str

    def to_dict(self) -> dict[str, str]:
        return {"symbol": self.symbol, "exchange": self.exchange}


@dataclass(frozen=True)
class Holding:
    particulars: str
    symbol: str
    exchange: str
    purchase_price: float = 0.0
    qty: float = 0.0
    investment: float = 0.0
    portfolio_pct: float = 0.0
    sector: str = "Other"

    def feed_item(self) -> FeedItem:
        return FeedItem(symbol=self.symbol, exchange=self.exchange)


@dataclass(frozen=True)
class SectorGroup:
    sector: str
    total_investment: float
    holdings: tuple[Holding, ...] = ()


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Result of one upload; replaced wholesale, never mutated."""

    total_investment: float
    holdings: tuple[Holding, ...] = ()
    sectors: tuple[SectorGroup, ...] = ()
    ts: int | None = None

    def feed_items(self) -> tuple[FeedItem, ...]:
        return tuple(holding.feed_item() for holding in self.holdings)


@dataclass(frozen=True)
class PriceRecord:
    symbol: str
    price: float | None
    currency: str | None = None
    source: str | None = None
    ok: bool = True
    ts: int | None = None


@dataclass(frozen=True)
class FundamentalsRecord:
    symbol: str
    exchange: str
    pe: str | None = None
    latest_earnings: str | None = None
    ok: bool = True
    ts: int | None = None
