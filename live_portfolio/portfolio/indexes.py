"""Lookup indexes rebuilt from scratch on every successful feed response."""

from __future__ import annotations

from typing import Iterable

from live_portfolio.portfolio.symbols import exchange_spellings
from live_portfolio.providers.models import FundamentalsRecord, PriceRecord

PriceIndex = dict[str, PriceRecord]
FundamentalsIndex = dict[str, FundamentalsRecord]


def build_price_index(records: Iterable[PriceRecord] | None) -> PriceIndex:
    index: PriceIndex = {}
    for record in records or ():
        key = (record.symbol or "").strip().upper()
        if key:
            index[key] = record
    return index


def build_fundamentals_index(records: Iterable[FundamentalsRecord] | None) -> FundamentalsIndex:
    """Key every record as ``SYMBOL:EXCHANGE`` under each spelling of its venue."""
    index: FundamentalsIndex = {}
    for record in records or ():
        symbol = (record.symbol or "").strip().upper()
        if not symbol:
            continue
        for exchange in exchange_spellings(record.exchange):
            index[f"{symbol}:{exchange}"] = record
    return index
