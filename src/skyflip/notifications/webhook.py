"""Discord-style webhook notifier for detected flips."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ..constants.network import HTTP_SUCCESS_RANGE, VIEW_AUCTION_COMMAND
from ..models import FlipEvent, strip_uuid

logger = logging.getLogger(__name__)

WEBHOOK_CONTENT = "Potential flip found!"
EMBED_TITLE = "Auction Details"
EMBED_COLOR = 3066993
DEFAULT_WEBHOOK_TIMEOUT_SECONDS = 10.0


def view_auction_command(opaque_id: str) -> str:
    return VIEW_AUCTION_COMMAND.format(auction_id=strip_uuid(opaque_id))


def _coins(value: float) -> str:
    return f"${value:,.0f}"


def build_webhook_payload(event: FlipEvent) -> Dict[str, Any]:
    """Embed with price, value, profit, margin and the in-game command."""
    fields = [
        {"name": "Selling Price", "value": _coins(event.price_asked), "inline": True},
        {"name": "Estimated Value", "value": _coins(event.estimated_value), "inline": True},
        {"name": "Potential Profit", "value": _coins(event.profit), "inline": True},
        {"name": "Profit Percentage", "value": f"{event.profit_percentage:.2f}%", "inline": True},
        {"name": "Command", "value": f"`{view_auction_command(event.opaque_id)}`", "inline": False},
    ]
    embed: Dict[str, Any] = {
        "title": EMBED_TITLE,
        "description": event.canonical_name,
        "color": EMBED_COLOR,
        "fields": fields,
    }
    if event.image_url:
        embed["thumbnail"] = {"url": event.image_url}
    return {"content": WEBHOOK_CONTENT, "embeds": [embed]}


class DiscordWebhookNotifier:
    """Posts each flip to a webhook URL; an empty URL disables delivery."""

    def __init__(self, webhook_url: str, *, timeout_seconds: float = DEFAULT_WEBHOOK_TIMEOUT_SECONDS) -> None:
        self._webhook_url = webhook_url.strip()
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def enabled(self) -> bool:
        return bool(self._webhook_url)

    @property
    def timeout(self) -> aiohttp.ClientTimeout:
        return self._timeout

    async def send(self, payload: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
        """POST *payload*; returns ``(success, error_text)``."""
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            async with session.post(self._webhook_url, json=payload) as response:
                if response.status in HTTP_SUCCESS_RANGE:
                    return True, None
                return False, f"{response.status} {await response.text()}"

    async def notify(self, event: FlipEvent) -> None:
        if not self.enabled:
            return
        try:
            success, error_text = await self.send(build_webhook_payload(event))
        except asyncio.TimeoutError:  # policy_guard: allow-silent-handler
            logger.error("Webhook timed out for flip %s", event.opaque_id)
            return
        except aiohttp.ClientError as exc:  # policy_guard: allow-silent-handler
            logger.error("Error sending webhook for flip %s: %s", event.opaque_id, exc)
            return

        if success:
            logger.debug("Webhook sent for flip %s", event.opaque_id)
        else:
            logger.error("Failed to send webhook for flip %s: %s", event.opaque_id, error_text)


__all__ = ["DiscordWebhookNotifier", "build_webhook_payload", "view_auction_command"]
