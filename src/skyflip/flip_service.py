"""Polling loop that drives one flip-detection cycle per feed update."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .config.settings import FlipperSettings, ServiceSettings, ValuationOptions
from .exceptions import FeedError
from .feed import AuctionFeedClient, FeedPoller
from .flip_detector import FlipDetector, FlipNotifier
from .models import FlipEvent
from .price_index import MarketPriceIndex, RebuildStats
from .snapshot_differ import SnapshotDiffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleReport:
    feed_unchanged: bool = False
    fetched_listings: int = 0
    added_listings: int = 0
    ended_listings: int = 0
    reindexed: bool = False
    rebuild_stats: Optional[RebuildStats] = None
    flips: List[FlipEvent] = field(default_factory=list)


class FlipService:
    """Owns the differ, price index, detector and cycle counter."""

    def __init__(
        self,
        poller: FeedPoller,
        options: ValuationOptions,
        service: ServiceSettings,
        notifiers: Optional[Sequence[FlipNotifier]] = None,
        *,
        differ: Optional[SnapshotDiffer] = None,
        index: Optional[MarketPriceIndex] = None,
    ) -> None:
        if service.reindex_interval < 1:
            raise ValueError("reindex_interval must be at least 1")
        self._poller = poller
        self._service = service
        self._differ = differ if differ is not None else SnapshotDiffer()
        self._index = index if index is not None else MarketPriceIndex(options.price_overrides)
        self._detector = FlipDetector(self._index, options, notifiers)
        self._processed_cycles = 0
        self._shutdown = asyncio.Event()

    @classmethod
    def from_settings(
        cls,
        settings: FlipperSettings,
        client: AuctionFeedClient,
        notifiers: Optional[Sequence[FlipNotifier]] = None,
        *,
        index: Optional[MarketPriceIndex] = None,
    ) -> "FlipService":
        poller = FeedPoller(
            client,
            page_fetch_delay_seconds=settings.api.page_fetch_delay_seconds,
            max_concurrent_pages=settings.api.max_concurrent_pages,
        )
        return cls(poller, settings.options, settings.service, notifiers, index=index)

    @property
    def index(self) -> MarketPriceIndex:
        return self._index

    @property
    def detector(self) -> FlipDetector:
        return self._detector

    @property
    def processed_cycles(self) -> int:
        return self._processed_cycles

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def request_shutdown(self) -> None:
        self._shutdown.set()

    async def run_cycle(self) -> CycleReport:
        """Poll, diff, periodically re-index and detect flips.

        Raises:
            FeedError: If the first feed page cannot be fetched
        """
        poll = await self._poller.poll(has_snapshot=self._differ.has_snapshot)
        if poll.feed_unchanged:
            return CycleReport(feed_unchanged=True)

        diff = self._differ.diff(poll.listings)

        rebuild_stats = None
        if self._processed_cycles % self._service.reindex_interval == 0:
            logger.info("Re-indexing market prices (cycle %d)", self._processed_cycles)
            rebuild_stats = self._index.rebuild(poll.listings)

        flips = await self._detector.detect(diff.added)
        for event in flips:
            log_flip(event)

        self._processed_cycles += 1
        return CycleReport(
            fetched_listings=len(poll.listings),
            added_listings=len(diff.added),
            ended_listings=len(diff.ended_ids),
            reindexed=rebuild_stats is not None,
            rebuild_stats=rebuild_stats,
            flips=flips,
        )

    async def run(self) -> None:
        """Run cycles until shutdown is requested."""
        logger.info("Flip service started")
        while not self._shutdown.is_set():
            delay = self._service.poll_interval_seconds
            try:
                report = await self.run_cycle()
                if not report.feed_unchanged:
                    logger.info(
                        "Cycle complete: %d listings, %d new, %d flips",
                        report.fetched_listings,
                        report.added_listings,
                        len(report.flips),
                    )
            except FeedError as exc:  # policy_guard: allow-silent-handler
                logger.error("Feed unavailable, retrying in %.0fs: %s", self._service.failure_backoff_seconds, exc)
                delay = self._service.failure_backoff_seconds
            except asyncio.CancelledError:
                raise
            except Exception:  # policy_guard: allow-broad-except
                logger.exception("Unexpected error in polling cycle")
                delay = self._service.failure_backoff_seconds
            await self._wait(delay)
        logger.info("Flip service stopped")

    async def _wait(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=delay)
        except asyncio.TimeoutError:  # policy_guard: allow-silent-handler
            pass


def log_flip(event: FlipEvent) -> None:
    logger.info(
        "[%s] %s | Price: %.0f | Value: %.0f | Profit: %.0f | Ends in: %s",
        event.opaque_id,
        event.canonical_name,
        event.price_asked,
        event.estimated_value,
        event.profit,
        event.time_ending(),
    )


__all__ = ["CycleReport", "FlipService", "log_flip"]
