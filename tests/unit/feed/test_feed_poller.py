"""Tests for the feed poller."""

from __future__ import annotations

import asyncio
from typing import Dict, List
from unittest.mock import AsyncMock

import pytest

from skyflip.exceptions import FeedError, PageFetchError
from skyflip.feed import FeedPage, FeedPoller, active_listings
from tests.helpers.nbt_builder import feed_record

NOW_MS = 1_000_000


def _page(number: int, records: List[dict], *, last_updated: int = 42, total_pages: int = 3) -> FeedPage:
    return FeedPage(page=number, success=True, last_updated=last_updated, total_pages=total_pages, records=records)


def _client(pages: Dict[int, object]) -> AsyncMock:
    async def fetch_page(page: int) -> FeedPage:
        result = pages[page]
        if isinstance(result, Exception):
            raise result
        return result

    client = AsyncMock()
    client.fetch_page = AsyncMock(side_effect=fetch_page)
    return client


def _poller(client, **kwargs) -> FeedPoller:
    return FeedPoller(client, clock=lambda: NOW_MS, **kwargs)


def _fetched_pages(client) -> List[int]:
    return sorted(call.args[0] for call in client.fetch_page.await_args_list)


class TestActiveListings:
    def test_filters_auctions_and_expired(self) -> None:
        records = [
            feed_record("live", 10, "p", end=NOW_MS + 1),
            feed_record("ended", 10, "p", end=NOW_MS),
            feed_record("bid", 10, "p", end=NOW_MS + 1, bin_listing=False),
        ]
        assert [listing.identity for listing in active_listings(records, NOW_MS)] == ["live"]

    def test_malformed_records_dropped(self, caplog) -> None:
        records = [{"uuid": "broken"}, feed_record("ok", 10, "p", end=NOW_MS + 1)]
        assert [listing.identity for listing in active_listings(records, NOW_MS)] == ["ok"]
        assert "Dropping malformed listing record" in caplog.text


class TestPoll:
    """Tests for FeedPoller.poll."""

    @pytest.mark.asyncio
    async def test_fetches_all_pages_in_order(self) -> None:
        client = _client(
            {
                0: _page(0, [feed_record("a", 1, "p", end=NOW_MS + 5)]),
                1: _page(1, [feed_record("b", 1, "p", end=NOW_MS + 5), feed_record("c", 1, "p", end=NOW_MS + 5)]),
                2: _page(2, [feed_record("d", 1, "p", end=NOW_MS + 5)]),
            }
        )

        result = await _poller(client).poll(has_snapshot=False)

        assert [listing.identity for listing in result.listings] == ["a", "b", "c", "d"]
        assert result.feed_unchanged is False
        assert result.last_updated == 42
        assert result.total_pages == 3
        assert _fetched_pages(client) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_unchanged_feed_stops_after_first_page(self) -> None:
        client = _client({n: _page(n, []) for n in range(3)})
        poller = _poller(client)
        await poller.poll(has_snapshot=False)
        client.fetch_page.reset_mock()

        result = await poller.poll(has_snapshot=True)

        assert result.feed_unchanged is True
        assert result.listings == []
        assert _fetched_pages(client) == [0]

    @pytest.mark.asyncio
    async def test_same_timestamp_without_snapshot_refetches(self) -> None:
        client = _client({n: _page(n, []) for n in range(3)})
        poller = _poller(client)
        await poller.poll(has_snapshot=False)
        client.fetch_page.reset_mock()

        result = await poller.poll(has_snapshot=False)

        assert result.feed_unchanged is False
        assert _fetched_pages(client) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_changed_timestamp_refetches(self) -> None:
        pages = {n: _page(n, []) for n in range(3)}
        client = _client(pages)
        poller = _poller(client)
        await poller.poll(has_snapshot=False)
        pages[0] = _page(0, [], last_updated=43)

        result = await poller.poll(has_snapshot=True)

        assert result.feed_unchanged is False
        assert poller.last_updated == 43

    @pytest.mark.asyncio
    async def test_failed_pages_degrade_to_empty(self) -> None:
        client = _client(
            {
                0: _page(0, [feed_record("a", 1, "p", end=NOW_MS + 5)]),
                1: PageFetchError("boom", page=1),
                2: FeedPage(page=2, success=False, cause="Page not found"),
            }
        )

        result = await _poller(client).poll(has_snapshot=False)

        assert [listing.identity for listing in result.listings] == ["a"]
        assert result.failed_pages == 2

    @pytest.mark.asyncio
    async def test_first_page_failure_raises_feed_error(self) -> None:
        client = _client({0: PageFetchError("down", page=0)})
        with pytest.raises(FeedError):
            await _poller(client).poll(has_snapshot=False)

    @pytest.mark.asyncio
    async def test_unsuccessful_first_page_raises_feed_error(self) -> None:
        client = _client({0: FeedPage(page=0, success=False, cause="Invalid API key")})
        with pytest.raises(FeedError, match="Invalid API key"):
            await _poller(client).poll(has_snapshot=False)

    @pytest.mark.asyncio
    async def test_failed_first_page_keeps_previous_timestamp(self) -> None:
        pages = {n: _page(n, []) for n in range(3)}
        client = _client(pages)
        poller = _poller(client)
        await poller.poll(has_snapshot=False)
        pages[0] = PageFetchError("down", page=0)

        with pytest.raises(FeedError):
            await poller.poll(has_snapshot=True)
        assert poller.last_updated == 42

    @pytest.mark.asyncio
    async def test_delay_precedes_each_extra_page(self) -> None:
        client = _client({n: _page(n, [], total_pages=4) for n in range(4)})
        sleep = AsyncMock()

        await _poller(client, page_fetch_delay_seconds=0.25, sleep=sleep).poll(has_snapshot=False)

        assert sleep.await_count == 3
        sleep.assert_awaited_with(0.25)

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self) -> None:
        in_flight = 0
        peak = 0

        async def fetch_page(page: int) -> FeedPage:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return _page(page, [], total_pages=8)

        client = AsyncMock()
        client.fetch_page = AsyncMock(side_effect=fetch_page)

        await _poller(client, max_concurrent_pages=2).poll(has_snapshot=False)

        assert peak <= 2

    def test_rejects_zero_concurrency(self) -> None:
        with pytest.raises(ValueError):
            FeedPoller(AsyncMock(), max_concurrent_pages=0)
