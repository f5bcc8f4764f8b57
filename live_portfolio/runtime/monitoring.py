"""Structured fetch logging and per-feed health metrics aggregation."""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any

LOGGER = logging.getLogger("live_portfolio.fetch_events")


@dataclass
class FeedHealth:
    total_fetches: int = 0
    failed_fetches: int = 0
    discarded_fetches: int = 0
    total_latency_ms: float = 0.0
    last_success_at: float | None = None
    last_error: str | None = None

    @property
    def avg_latency_ms(self) -> float:
        return (self.total_latency_ms / self.total_fetches) if self.total_fetches else 0.0

    @property
    def error_rate(self) -> float:
        return (self.failed_fetches / self.total_fetches) if self.total_fetches else 0.0


@dataclass
class HealthSnapshot:
    uptime_seconds: float
    feeds: dict[str, dict[str, Any]] = field(default_factory=dict)


class FeedMetrics:
    def __init__(self, started_at: float | None = None) -> None:
        self.started_at = started_at or time.time()
        self._lock = threading.Lock()
        self._feeds: dict[str, FeedHealth] = {}

    def record(self, feed: str, latency_ms: float, success: bool, error: str | None = None) -> None:
        with self._lock:
            health = self._feeds.setdefault(feed, FeedHealth())
            health.total_fetches += 1
            health.total_latency_ms += max(0.0, latency_ms)
            if success:
                health.last_success_at = time.time()
            else:
                health.failed_fetches += 1
                health.last_error = error

    def record_discard(self, feed: str) -> None:
        with self._lock:
            self._feeds.setdefault(feed, FeedHealth()).discarded_fetches += 1

    def snapshot(self) -> HealthSnapshot:
        with self._lock:
            feeds = {
                name: {
                    "total_fetches": health.total_fetches,
                    "failed_fetches": health.failed_fetches,
                    "discarded_fetches": health.discarded_fetches,
                    "error_rate": health.error_rate,
                    "avg_latency_ms": round(health.avg_latency_ms, 3),
                    "last_success_at": health.last_success_at,
                    "last_error": health.last_error,
                }
                for name, health in self._feeds.items()
            }
        return HealthSnapshot(uptime_seconds=max(0.0, time.time() - self.started_at), feeds=feeds)


def log_fetch_event(
    feed: str,
    items: int,
    latency_ms: float,
    success: bool,
    records: int | None = None,
    error: str | None = None,
) -> None:
    payload = {
        "feed": feed,
        "items": items,
        "records": records,
        "latency_ms": round(latency_ms, 3),
        "success": success,
        "timestamp": int(time.time()),
    }
    if error:
        payload["error"] = error
    LOGGER.info(json.dumps(payload, ensure_ascii=True))
