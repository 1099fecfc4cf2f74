"""HTTP session management for the feed client."""

from __future__ import annotations

import asyncio
from typing import Optional

import aiohttp


class FeedSessionManager:
    """Lazily creates one shared aiohttp session with bounded timeouts."""

    def __init__(self, *, request_timeout_seconds: float, connect_timeout_seconds: float) -> None:
        self._timeout = aiohttp.ClientTimeout(total=request_timeout_seconds, connect=connect_timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_lock = asyncio.Lock()

    @property
    def timeout(self) -> aiohttp.ClientTimeout:
        return self._timeout

    @property
    def session(self) -> Optional[aiohttp.ClientSession]:
        return self._session

    async def ensure_session(self) -> aiohttp.ClientSession:
        """Return the open session, creating it on first use."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(timeout=self._timeout)
            return self._session

    async def close(self) -> None:
        """Close the HTTP session if one exists."""
        async with self._session_lock:
            if self._session is not None:
                await self._session.close()
                self._session = None


__all__ = ["FeedSessionManager"]
