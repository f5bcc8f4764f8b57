"""Interval-driven background polling of one live feed.

Each poller owns a single replace-on-success state cell. A fetch is tagged with
the key-set generation it was issued for and its result is dropped when the
generation has moved on, so a response for an old holding set can never
overwrite the index built for a newer one.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Generic, Mapping, Sequence, TypeVar

from live_portfolio.providers.http import GENERIC_ERROR_MESSAGE, FeedError
from live_portfolio.providers.models import FeedItem, FeedName
from live_portfolio.runtime.monitoring import FeedMetrics, log_fetch_event

R = TypeVar("R")
LOGGER = logging.getLogger(__name__)


class PollStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    REFRESHING = "refreshing"
    ERROR = "error"


@dataclass(frozen=True)
class PollState(Generic[R]):
    status: PollStatus = PollStatus.IDLE
    items: tuple[FeedItem, ...] = ()
    data: tuple[R, ...] | None = None
    index: Mapping[str, R] | None = None
    error: str | None = None
    error_code: str | None = None
    is_fetching: bool = False
    updated_at: float | None = None
    error_at: float | None = None
    stale_after_seconds: float = 15.0

    @property
    def is_stale(self) -> bool:
        if self.updated_at is None:
            return True
        return time.time() - self.updated_at > self.stale_after_seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "items": len(self.items),
            "records": len(self.data) if self.data is not None else None,
            "is_fetching": self.is_fetching,
            "is_stale": self.is_stale,
            "error": self.error,
            "error_code": self.error_code,
            "updated_at": self.updated_at,
            "error_at": self.error_at,
        }


def derive_status(state: PollState) -> PollStatus:
    if not state.items:
        return PollStatus.IDLE
    if state.is_fetching:
        return PollStatus.LOADING if state.data is None else PollStatus.REFRESHING
    if state.error is not None:
        return PollStatus.ERROR
    if state.data is not None:
        return PollStatus.READY
    return PollStatus.LOADING


class LiveDataPoller(Generic[R]):
    """Re-fetches one feed for the current key set every ``interval_seconds``."""

    def __init__(
        self,
        name: FeedName,
        fetch: Callable[[tuple[FeedItem, ...]], Sequence[R]],
        indexer: Callable[[Sequence[R]], Mapping[str, R]],
        interval_seconds: float = 15.0,
        retries: int = 2,
        retry_delay_seconds: float = 1.0,
        stale_after_seconds: float = 15.0,
        metrics: FeedMetrics | None = None,
    ) -> None:
        self.name = name
        self.fetch = fetch
        self.indexer = indexer
        self.interval_seconds = max(0.0, interval_seconds)
        self.retries = max(0, retries)
        self.retry_delay_seconds = max(0.0, retry_delay_seconds)
        self.metrics = metrics
        self._state: PollState[R] = PollState(stale_after_seconds=stale_after_seconds)
        self._generation = 0
        self._in_flight = 0
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> PollState[R]:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def index(self) -> Mapping[str, R]:
        return self._state.index or {}

    def _update(self, **changes: Any) -> PollState[R]:
        state = replace(self._state, **changes)
        self._state = replace(state, status=derive_status(state))
        return self._state

    def set_items(self, items: Sequence[FeedItem]) -> bool:
        """Switch to a new key set; returns ``False`` when the identity is unchanged.

        A non-empty key set starts a polling task, so it must be called from a
        running event loop.
        """
        key = tuple(items)
        running = self._task is not None and not self._task.done()
        if key == self._state.items and (running or not key):
            return False

        self._generation += 1
        self._cancel_task()
        self._in_flight = 0
        self._state = PollState(stale_after_seconds=self._state.stale_after_seconds)
        self._update(items=key, is_fetching=bool(key))
        LOGGER.info("poller re-keyed: feed=%s items=%s generation=%s", self.name, len(key), self._generation)
        if key:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._run(self._generation), name=f"poller:{self.name}")
        return True

    async def _run(self, generation: int) -> None:
        while generation == self._generation:
            await self.refresh()
            await asyncio.sleep(self.interval_seconds)

    async def _fetch_with_retries(self, items: tuple[FeedItem, ...]) -> Sequence[R]:
        attempts = self.retries + 1
        for attempt in range(attempts):
            try:
                return await asyncio.to_thread(self.fetch, items)
            except FeedError as error:
                if not error.retriable or attempt + 1 >= attempts:
                    raise
                delay = self.retry_delay_seconds * (2**attempt)
                LOGGER.info(
                    "poll retry scheduled: feed=%s attempt=%s code=%s delay_s=%s",
                    self.name,
                    attempt + 1,
                    error.code,
                    delay,
                )
                await asyncio.sleep(delay)
        raise FeedError(self.name, "UPSTREAM", GENERIC_ERROR_MESSAGE)

    async def refresh(self) -> PollState[R]:
        """Run one fetch cycle for the current key set and apply it if still current."""
        items = self._state.items
        if not items:
            return self._state

        generation = self._generation
        self._in_flight += 1
        self._update(is_fetching=True)
        started = time.perf_counter()
        records: Sequence[R] = ()
        failure: FeedError | None = None
        try:
            records = await self._fetch_with_retries(items)
        except FeedError as error:
            failure = error
        except Exception:
            LOGGER.exception("poll unexpected failure: feed=%s items=%s", self.name, len(items))
            failure = FeedError(self.name, "UPSTREAM", GENERIC_ERROR_MESSAGE)
        finally:
            if generation == self._generation:
                self._in_flight = max(0, self._in_flight - 1)
                self._update(is_fetching=self._in_flight > 0)
        latency_ms = (time.perf_counter() - started) * 1000.0

        if generation != self._generation:
            LOGGER.debug(
                "poll result discarded (key set changed): feed=%s issued_generation=%s current_generation=%s",
                self.name,
                generation,
                self._generation,
            )
            if self.metrics is not None:
                self.metrics.record_discard(self.name)
            return self._state

        if failure is not None:
            LOGGER.warning(
                "poll failed: feed=%s items=%s code=%s status=%s latency_ms=%s",
                self.name,
                len(items),
                failure.code,
                failure.status,
                round(latency_ms, 2),
            )
            log_fetch_event(self.name, len(items), latency_ms, success=False, error=failure.message)
            if self.metrics is not None:
                self.metrics.record(self.name, latency_ms, success=False, error=failure.message)
            return self._update(error=failure.message, error_code=failure.code, error_at=time.time())

        data = tuple(records)
        log_fetch_event(self.name, len(items), latency_ms, success=True, records=len(data))
        if self.metrics is not None:
            self.metrics.record(self.name, latency_ms, success=True)
        return self._update(
            data=data,
            index=self.indexer(data),
            error=None,
            error_code=None,
            updated_at=time.time(),
        )

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def stop(self) -> None:
        """Stop polling; the last state stays readable."""
        self._generation += 1
        self._cancel_task()
        self._in_flight = 0
        self._update(is_fetching=False)
