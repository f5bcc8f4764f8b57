"""Client for the ingestion, price and fundamentals feeds with normalized outputs."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any, Iterable

from live_portfolio.providers.http import FeedError, request_json, server_error_message
from live_portfolio.providers.models import (
    FeedItem,
    FundamentalsRecord,
    Holding,
    PortfolioSnapshot,
    PriceRecord,
    SectorGroup,
)

LOGGER = logging.getLogger(__name__)
DEFAULT_SECTOR = "Other"


def _to_float(value: object) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: object) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None


def _to_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_ok(value: object) -> bool:
    """Row status flag; a missing flag means ok, unrecognized strings do not."""
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in {"true", "1", "yes", "ok"}


def parse_holding(row: dict[str, Any]) -> Holding:
    symbol = str(row.get("symbol") or "").strip()
    return Holding(
        particulars=str(row.get("particulars") or symbol),
        symbol=symbol,
        exchange=str(row.get("exchange") or "").strip().upper(),
        purchase_price=_to_float(row.get("purchasePrice")) or 0.0,
        qty=_to_float(row.get("qty")) or 0.0,
        investment=_to_float(row.get("investment")) or 0.0,
        portfolio_pct=_to_float(row.get("portfolioPct")) or 0.0,
        sector=_to_text(row.get("sector")) or DEFAULT_SECTOR,
    )


def _parse_holdings(rows: object) -> tuple[Holding, ...]:
    if not isinstance(rows, list):
        return ()
    return tuple(parse_holding(row) for row in rows if isinstance(row, dict))


def _group_by_sector(holdings: tuple[Holding, ...]) -> tuple[SectorGroup, ...]:
    grouped: dict[str, list[Holding]] = {}
    for holding in holdings:
        grouped.setdefault(holding.sector, []).append(holding)
    return tuple(
        SectorGroup(
            sector=sector,
            total_investment=sum(item.investment for item in items),
            holdings=tuple(items),
        )
        for sector, items in grouped.items()
    )


def parse_snapshot(payload: object) -> PortfolioSnapshot:
    """Build a snapshot from the ingestion service response, used as supplied."""
    if not isinstance(payload, dict) or not isinstance(payload.get("holdings"), list):
        raise FeedError("upload", "BAD_RESPONSE", "Upload response did not contain holdings.")
    holdings = _parse_holdings(payload["holdings"])
    sectors_raw = payload.get("sectors")
    if isinstance(sectors_raw, list):
        sectors = tuple(
            SectorGroup(
                sector=_to_text(item.get("sector")) or DEFAULT_SECTOR,
                total_investment=_to_float(item.get("totalInvestment")) or 0.0,
                holdings=_parse_holdings(item.get("holdings")),
            )
            for item in sectors_raw
            if isinstance(item, dict)
        )
    else:
        sectors = _group_by_sector(holdings)
    total = _to_float(payload.get("totalInvestment"))
    return PortfolioSnapshot(
        total_investment=total if total is not None else sum(item.investment for item in holdings),
        holdings=holdings,
        sectors=sectors,
        ts=_to_int(payload.get("ts")),
    )


def parse_price_rows(payload: object) -> list[PriceRecord]:
    if not isinstance(payload, list):
        message = server_error_message(payload) or "Price feed did not return a list."
        raise FeedError("prices", "BAD_RESPONSE", message)
    records: list[PriceRecord] = []
    for row in payload:
        if not isinstance(row, dict):
            LOGGER.debug("price row skipped (not an object): %r", row)
            continue
        records.append(
            PriceRecord(
                symbol=str(row.get("symbol") or ""),
                price=_to_float(row.get("price")),
                currency=_to_text(row.get("currency")),
                source=_to_text(row.get("source")),
                ok=_to_ok(row.get("ok", True)),
                ts=_to_int(row.get("ts")),
            )
        )
    return records


def parse_fundamentals_rows(payload: object) -> list[FundamentalsRecord]:
    if not isinstance(payload, list):
        message = server_error_message(payload) or "Fundamentals feed did not return a list."
        raise FeedError("fundamentals", "BAD_RESPONSE", message)
    records: list[FundamentalsRecord] = []
    for row in payload:
        if not isinstance(row, dict):
            LOGGER.debug("fundamentals row skipped (not an object): %r", row)
            continue
        records.append(
            FundamentalsRecord(
                symbol=str(row.get("symbol") or ""),
                exchange=str(row.get("exchange") or ""),
                pe=_to_text(row.get("pe")),
                latest_earnings=_to_text(row.get("latestEarnings")),
                ok=_to_ok(row.get("ok", True)),
                ts=_to_int(row.get("ts")),
            )
        )
    return records


class FeedClient:
    def __init__(self, base_url: str, timeout_seconds: float = 60.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    def upload_portfolio(self, file_path: str | Path) -> PortfolioSnapshot:
        path = Path(file_path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with path.open("rb") as handle:
            payload = request_json(
                "POST",
                self._url("/portfolio/upload"),
                feed="upload",
                timeout_seconds=self.timeout_seconds,
                files={"file": (path.name, handle, content_type)},
            )
        return parse_snapshot(payload)

    def fetch_prices(self, items: Iterable[FeedItem]) -> list[PriceRecord]:
        body = {"items": [item.to_dict() for item in items]}
        payload = request_json("POST", self._url("/prices"), feed="prices", timeout_seconds=self.timeout_seconds, json_body=body)
        return parse_price_rows(payload)

    def fetch_fundamentals(self, items: Iterable[FeedItem]) -> list[FundamentalsRecord]:
        body = {"items": [item.to_dict() for item in items]}
        payload = request_json(
            "POST",
            self._url("/fundamentals"),
            feed="fundamentals",
            timeout_seconds=self.timeout_seconds,
            json_body=body,
        )
        return parse_fundamentals_rows(payload)
