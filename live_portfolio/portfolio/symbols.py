"""Symbol resolution between the portfolio's exchange codes and the feeds' dialects."""

from __future__ import annotations

from typing import Mapping

from live_portfolio.providers.models import Holding, PriceRecord

# Ordered key strategies probed against the price index; first hit wins.
PRICE_KEY_STRATEGIES: tuple[tuple[str, str], ...] = (
    ("nse_suffix", "{symbol}.NS"),
    ("bse_suffix", "{symbol}.BO"),
    ("bom_qualified", "{symbol}:BOM"),
    ("raw", "{symbol}"),
    ("upper", "{symbol_upper}"),
)

# Venue spelling -> canonical spelling used for fundamentals keys.
EXCHANGE_ALIASES: dict[str, str] = {
    "BSE": "BOM",
    "BOM": "BOM",
}


def canonical_exchange(exchange: str) -> str:
    clean = (exchange or "").strip().upper()
    return EXCHANGE_ALIASES.get(clean, clean)


def exchange_spellings(exchange: str) -> list[str]:
    """All accepted spellings of the venue ``exchange`` belongs to, canonical first."""
    canonical = canonical_exchange(exchange)
    spellings = [canonical]
    for alias, target in EXCHANGE_ALIASES.items():
        if target == canonical and alias not in spellings:
            spellings.append(alias)
    return spellings


def fundamentals_key(symbol: str, exchange: str) -> str:
    return f"{(symbol or '').strip().upper()}:{canonical_exchange(exchange)}"


class SymbolResolver:
    """Matches a holding to a price record by probing an ordered list of key forms."""

    def __init__(self, strategies: tuple[tuple[str, str], ...] = PRICE_KEY_STRATEGIES) -> None:
        self.strategies = strategies

    def candidate_keys(self, symbol: str) -> list[str]:
        clean = (symbol or "").strip()
        if not clean:
            return []
        keys: list[str] = []
        for _, template in self.strategies:
            key = template.format(symbol=clean, symbol_upper=clean.upper()).upper()
            if key not in keys:
                keys.append(key)
        return keys

    def resolve_key(self, holding: Holding, price_index: Mapping[str, PriceRecord]) -> str | None:
        for key in self.candidate_keys(holding.symbol):
            if key in price_index:
                return key
        return None

    def resolve(self, holding: Holding, price_index: Mapping[str, PriceRecord]) -> PriceRecord | None:
        key = self.resolve_key(holding, price_index)
        return price_index[key] if key is not None else None


DEFAULT_RESOLVER = SymbolResolver()


def resolve_price(holding: Holding, price_index: Mapping[str, PriceRecord]) -> PriceRecord | None:
    return DEFAULT_RESOLVER.resolve(holding, price_index)
