"""HTTP client for the paginated listing feed."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp

from ..config.settings import ApiSettings
from ..constants.network import API_KEY_HEADER, HTTP_FORBIDDEN, INVALID_API_KEY_CAUSE
from ..exceptions import ConfigurationError, FeedError, PageFetchError
from .session_manager import FeedSessionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedPage:
    """One decoded page of the listing feed."""

    page: int
    success: bool
    last_updated: Optional[int] = None
    total_pages: int = 0
    records: List[Dict[str, Any]] = field(default_factory=list, repr=False)
    cause: Optional[str] = None

    @classmethod
    def from_payload(cls, page: int, payload: Any) -> "FeedPage":
        """Validate a page payload.

        Raises:
            PageFetchError: If the payload is not a feed page object
        """
        if not isinstance(payload, dict):
            raise PageFetchError(f"Feed page {page} payload was not a JSON object", page=page)

        if payload.get("success") is not True:
            cause = payload.get("cause")
            return cls(page=page, success=False, cause=str(cause) if cause is not None else "unknown cause")

        try:
            last_updated = int(payload["lastUpdated"])
            total_pages = int(payload["totalPages"])
        except (KeyError, TypeError, ValueError) as exc:
            raise PageFetchError(f"Feed page {page} is missing 'lastUpdated' or 'totalPages'", page=page) from exc

        records = payload.get("auctions")
        if records is None:
            records = []
        if not isinstance(records, list):
            raise PageFetchError(f"Feed page {page} 'auctions' is not a list", page=page)
        return cls(page=page, success=True, last_updated=last_updated, total_pages=total_pages, records=records)


class AuctionFeedClient:
    """Fetches feed pages with the configured key and timeouts."""

    def __init__(self, api: ApiSettings, session_manager: Optional[FeedSessionManager] = None) -> None:
        self._api = api
        self._sessions = session_manager or FeedSessionManager(
            request_timeout_seconds=api.request_timeout_seconds,
            connect_timeout_seconds=api.connect_timeout_seconds,
        )

    @property
    def headers(self) -> Dict[str, str]:
        return {API_KEY_HEADER: self._api.key}

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> tuple[int, Any]:
        session = await self._sessions.ensure_session()
        async with session.get(url, params=params, headers=self.headers) as response:
            return response.status, await response.json(content_type=None)

    async def fetch_page(self, page: int) -> FeedPage:
        """Fetch one feed page.

        Raises:
            PageFetchError: On network errors, timeouts and malformed payloads
        """
        try:
            status, payload = await self._get_json(self._api.feed_url, {"page": page})
        except asyncio.TimeoutError as exc:
            raise PageFetchError(f"Timed out fetching feed page {page}", page=page) from exc
        except (aiohttp.ClientError, json.JSONDecodeError) as exc:
            raise PageFetchError(f"Error fetching feed page {page}: {exc}", page=page) from exc

        feed_page = FeedPage.from_payload(page, payload)
        if feed_page.success:
            logger.debug("Fetched feed page %d (status %d, %d records)", page, status, len(feed_page.records))
        return feed_page

    async def check_api_key(self) -> None:
        """Validate the API key against the key-check endpoint.

        Raises:
            ConfigurationError: If the key is rejected
            FeedError: If the endpoint cannot be reached
        """
        try:
            status, payload = await self._get_json(self._api.key_check_url)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as exc:
            raise FeedError(f"Error validating API key: {exc}") from exc

        cause = payload.get("cause") if isinstance(payload, dict) else None
        if cause == INVALID_API_KEY_CAUSE or status == HTTP_FORBIDDEN:
            raise ConfigurationError("Invalid API key", status=status)
        logger.info("API key accepted (status %d)", status)

    async def close(self) -> None:
        await self._sessions.close()


__all__ = ["AuctionFeedClient", "FeedPage"]
