"""Command-line entry point: ``python -m skyflip`` or ``skyflip``."""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import FlipperSettings, load_settings
from .exceptions import ConfigurationError, FeedError
from .feed import AuctionFeedClient
from .flip_detector import FlipNotifier
from .flip_service import FlipService
from .logging_config import setup_logging
from .notifications import DiscordWebhookNotifier, FlipBroadcastServer
from .price_index import MarketPriceIndex
from .service_runner import run_async_service

SERVICE_NAME = "skyflip"

logger = logging.getLogger(__name__)


async def run_flipper(settings: FlipperSettings) -> None:
    """Validate the API key, start the notifiers and poll until cancelled."""
    client = AuctionFeedClient(settings.api)
    index = MarketPriceIndex(settings.options.price_overrides)
    notifiers: List[FlipNotifier] = []

    webhook = DiscordWebhookNotifier(settings.notifications.webhook_url)
    if webhook.enabled:
        notifiers.append(webhook)
    else:
        logger.info("No webhook URL configured; webhook notifications disabled")

    broadcast: Optional[FlipBroadcastServer] = None
    if settings.notifications.broadcast_enabled:
        broadcast = FlipBroadcastServer(
            index,
            host=settings.notifications.broadcast_host,
            port=settings.notifications.broadcast_port,
        )
        notifiers.append(broadcast)

    service = FlipService.from_settings(settings, client, notifiers, index=index)
    try:
        await client.check_api_key()
        if broadcast is not None:
            await broadcast.start()
        await service.run()
    finally:
        service.request_shutdown()
        if broadcast is not None:
            await broadcast.stop()
        await client.close()


def main() -> int:
    setup_logging(SERVICE_NAME)
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1

    try:
        run_async_service(
            lambda: run_flipper(settings),
            service_name=SERVICE_NAME,
            configure_logging=False,
            shutdown_message="Shutting down flip service",
        )
    except (ConfigurationError, FeedError) as exc:
        logger.error("Startup failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
