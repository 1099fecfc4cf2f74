"""Network and HTTP constants.

Endpoints and status codes used by the feed client, the key check and the
notification channels.
"""

# HTTP status codes
HTTP_OK = 200
HTTP_FORBIDDEN = 403
HTTP_SUCCESS_RANGE = range(200, 300)

# Upstream endpoints
DEFAULT_FEED_URL = "https://api.hypixel.net/v2/skyblock/auctions"
DEFAULT_KEY_CHECK_URL = "https://api.hypixel.net/v2/punishmentstats"
API_KEY_HEADER = "API-Key"
INVALID_API_KEY_CAUSE = "Invalid API key"

# Links handed to subscribers
ITEM_IMAGE_URL = "https://sky.lea.moe/item/{item_id}"
HEAD_IMAGE_URL = "https://sky.lea.moe/head/{texture_id}"
AUCTION_LINK_URL = "https://sky.coflnet.com/auction/{auction_id}"
VIEW_AUCTION_COMMAND = "/viewauction {auction_id}"

# Broadcast server
DEFAULT_BROADCAST_HOST = "0.0.0.0"
DEFAULT_BROADCAST_PORT = 8887

__all__ = [
    "API_KEY_HEADER",
    "AUCTION_LINK_URL",
    "DEFAULT_BROADCAST_HOST",
    "DEFAULT_BROADCAST_PORT",
    "DEFAULT_FEED_URL",
    "DEFAULT_KEY_CHECK_URL",
    "HEAD_IMAGE_URL",
    "HTTP_FORBIDDEN",
    "HTTP_OK",
    "HTTP_SUCCESS_RANGE",
    "INVALID_API_KEY_CAUSE",
    "ITEM_IMAGE_URL",
    "VIEW_AUCTION_COMMAND",
]
