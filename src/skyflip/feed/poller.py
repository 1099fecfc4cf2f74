"""Fetch a full listing snapshot, one page at a time."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from ..exceptions import DecodeError, FeedError, PageFetchError
from ..models import Listing, now_ms
from .client import AuctionFeedClient, FeedPage

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PollResult:
    listings: List[Listing] = field(default_factory=list)
    feed_unchanged: bool = False
    last_updated: Optional[int] = None
    total_pages: int = 0
    failed_pages: int = 0


def active_listings(records: Iterable[Dict[str, Any]], at_ms: int) -> List[Listing]:
    """Parse *records* and keep fixed-price listings ending after *at_ms*."""
    listings: List[Listing] = []
    for record in records:
        try:
            listing = Listing.from_feed(record)
        except DecodeError as exc:  # policy_guard: allow-silent-handler
            logger.warning("Dropping malformed listing record: %s", exc)
            continue
        if listing.is_active(at_ms):
            listings.append(listing)
    return listings


class FeedPoller:
    """Polls the feed and reports whether it changed since the last poll."""

    def __init__(
        self,
        client: AuctionFeedClient,
        *,
        page_fetch_delay_seconds: float = 0.0,
        max_concurrent_pages: int = 10,
        clock: Callable[[], int] = now_ms,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if max_concurrent_pages < 1:
            raise ValueError("max_concurrent_pages must be at least 1")
        self._client = client
        self._delay = page_fetch_delay_seconds
        self._max_concurrent = max_concurrent_pages
        self._clock = clock
        self._sleep = sleep
        self._last_updated: Optional[int] = None

    @property
    def last_updated(self) -> Optional[int]:
        return self._last_updated

    async def poll(self, *, has_snapshot: bool) -> PollResult:
        """Fetch every page unless the feed is unchanged.

        Args:
            has_snapshot: Whether a previous active set exists to compare against

        Raises:
            FeedError: If page 0 cannot be fetched
        """
        first_page = await self._fetch_first_page()
        if has_snapshot and first_page.last_updated == self._last_updated:
            logger.info("Feed not updated since %s, skipping cycle", self._last_updated)
            return PollResult(feed_unchanged=True, last_updated=self._last_updated, total_pages=first_page.total_pages)

        self._last_updated = first_page.last_updated
        logger.info("Feed has %d pages (last updated %s)", first_page.total_pages, first_page.last_updated)

        semaphore = asyncio.Semaphore(self._max_concurrent)
        remaining = await asyncio.gather(
            *(self._fetch_with_semaphore(page, semaphore) for page in range(1, first_page.total_pages))
        )

        at_ms = self._clock()
        listings = active_listings(first_page.records, at_ms)
        failed = 0
        for records in remaining:
            if records is None:
                failed += 1
                continue
            listings.extend(active_listings(records, at_ms))

        if failed:
            logger.warning("%d of %d feed pages failed and were treated as empty", failed, first_page.total_pages)
        logger.info("Fetched %d active fixed-price listings", len(listings))
        return PollResult(
            listings=listings,
            last_updated=first_page.last_updated,
            total_pages=first_page.total_pages,
            failed_pages=failed,
        )

    async def _fetch_first_page(self) -> FeedPage:
        try:
            page = await self._client.fetch_page(0)
        except PageFetchError as exc:
            raise FeedError(f"Failed to fetch first feed page: {exc}") from exc
        if not page.success:
            raise FeedError(f"Feed request unsuccessful: {page.cause}", cause=page.cause)
        return page

    async def _fetch_with_semaphore(self, page: int, semaphore: asyncio.Semaphore) -> Optional[List[Dict[str, Any]]]:
        async with semaphore:
            if self._delay > 0:
                await self._sleep(self._delay)
            try:
                feed_page = await self._client.fetch_page(page)
            except PageFetchError as exc:  # policy_guard: allow-silent-handler
                logger.warning("Feed page %d failed: %s", page, exc)
                return None
            if not feed_page.success:
                logger.warning("Feed page %d unsuccessful: %s", page, feed_page.cause)
                return None
            return feed_page.records


__all__ = ["FeedPoller", "PollResult", "active_listings"]
