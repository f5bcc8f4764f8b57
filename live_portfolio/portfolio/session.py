"""Live portfolio session: current snapshot, both feed pollers, on-demand valuation."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from live_portfolio.config.settings import Settings
from live_portfolio.portfolio.indexes import build_fundamentals_index, build_price_index
from live_portfolio.portfolio.valuation import PortfolioValuation, value_portfolio
from live_portfolio.providers.feed_client import FeedClient
from live_portfolio.providers.http import FeedError
from live_portfolio.providers.models import FundamentalsRecord, PortfolioSnapshot, PriceRecord
from live_portfolio.runtime.monitoring import FeedMetrics
from live_portfolio.services.poller import LiveDataPoller

LOGGER = logging.getLogger(__name__)
NO_FILE_MESSAGE = "No file selected"


class UploadError(Exception):
    """Raised when an upload cannot produce a new snapshot."""


class PortfolioSession:
    def __init__(self, client: FeedClient, settings: Settings | None = None, metrics: FeedMetrics | None = None) -> None:
        settings = settings or Settings()
        self.client = client
        self.metrics = metrics or FeedMetrics()
        self._snapshot: PortfolioSnapshot | None = None
        poller_options = {
            "interval_seconds": settings.poll_interval_seconds,
            "retries": settings.poll_retries,
            "retry_delay_seconds": settings.poll_retry_delay_seconds,
            "stale_after_seconds": settings.poll_stale_after_seconds,
            "metrics": self.metrics,
        }
        self.prices: LiveDataPoller[PriceRecord] = LiveDataPoller(
            "prices", client.fetch_prices, build_price_index, **poller_options
        )
        self.fundamentals: LiveDataPoller[FundamentalsRecord] = LiveDataPoller(
            "fundamentals", client.fetch_fundamentals, build_fundamentals_index, **poller_options
        )

    @property
    def snapshot(self) -> PortfolioSnapshot | None:
        return self._snapshot

    def load_snapshot(self, snapshot: PortfolioSnapshot) -> None:
        """Replace the current snapshot and re-key both pollers on its holding set."""
        self._snapshot = snapshot
        items = snapshot.feed_items()
        self.prices.set_items(items)
        self.fundamentals.set_items(items)
        LOGGER.info(
            "portfolio loaded: holdings=%s sectors=%s total_investment=%s",
            len(snapshot.holdings),
            len(snapshot.sectors),
            snapshot.total_investment,
        )

    async def upload(self, file_path: str | None) -> PortfolioSnapshot:
        """Upload a holdings file; on any failure the current snapshot stays in place."""
        if not file_path or not str(file_path).strip():
            raise UploadError(NO_FILE_MESSAGE)
        path = Path(str(file_path).strip()).expanduser()
        if not path.is_file():
            raise UploadError(f"File not found: {path}")
        try:
            snapshot = await asyncio.to_thread(self.client.upload_portfolio, path)
        except FeedError as error:
            LOGGER.warning("portfolio upload failed: file=%s code=%s status=%s", path.name, error.code, error.status)
            raise UploadError(error.message) from error
        self.load_snapshot(snapshot)
        return snapshot

    def valuation(self) -> PortfolioValuation:
        return value_portfolio(self._snapshot, self.prices.index, self.fundamentals.index)

    def status(self) -> dict[str, Any]:
        prices = self.prices.state
        fundamentals = self.fundamentals.state
        return {
            "has_portfolio": self._snapshot is not None,
            "updating": prices.is_fetching or fundamentals.is_fetching,
            "prices": prices.to_dict(),
            "fundamentals": fundamentals.to_dict(),
        }

    async def refresh(self) -> dict[str, Any]:
        await asyncio.gather(self.prices.refresh(), self.fundamentals.refresh())
        return self.status()

    def close(self) -> None:
        self.prices.stop()
        self.fundamentals.stop()
