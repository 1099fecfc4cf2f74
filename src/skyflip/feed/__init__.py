"""Listing feed access."""

from .client import AuctionFeedClient, FeedPage
from .poller import FeedPoller, PollResult, active_listings
from .session_manager import FeedSessionManager

__all__ = [
    "AuctionFeedClient",
    "FeedPage",
    "FeedPoller",
    "FeedSessionManager",
    "PollResult",
    "active_listings",
]
