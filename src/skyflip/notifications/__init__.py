"""Outbound flip notification channels."""

from .broadcast import FlipBroadcastServer, build_broadcast_message
from .webhook import DiscordWebhookNotifier, build_webhook_payload

__all__ = [
    "DiscordWebhookNotifier",
    "FlipBroadcastServer",
    "build_broadcast_message",
    "build_webhook_payload",
]
