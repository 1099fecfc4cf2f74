"""Constants package for shared constant values."""

from .items import (
    DEFAULT_ENCHANT_MIN_LEVELS,
    DEFAULT_PRICE_OVERRIDES,
    ENCHANTED_BOOK_ID,
    PET_ID,
    UNKNOWN_ITEM,
)
from .network import HTTP_OK

__all__ = [
    "DEFAULT_ENCHANT_MIN_LEVELS",
    "DEFAULT_PRICE_OVERRIDES",
    "ENCHANTED_BOOK_ID",
    "HTTP_OK",
    "PET_ID",
    "UNKNOWN_ITEM",
]
