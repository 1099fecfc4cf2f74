"""Estimate listing value from the market index plus applied modifiers.

The estimate is the lowest indexed unit price for the item's canonical name
plus the value of its modifiers, added in a fixed order: potato books,
recombobulator, wood singularity, enchantments.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .config.settings import ValuationOptions
from .constants.items import (
    DUNGEON_LORE_MARKER,
    ENCHANTED_BOOK_ID,
    ENCHANTMENTS_KEY,
    EXPONENTIAL_ENCHANT_PREFIX,
    EXPONENTIAL_ENCHANTS,
    FUMING_POTATO_BOOK,
    HOT_POTATO_BOOK,
    HOT_POTATO_BOOK_LIMIT,
    HOT_POTATO_COUNT_KEY,
    ORIGIN_TAG_KEY,
    RARITY_UPGRADES_KEY,
    RECOMBOBULATOR,
    UNKNOWN_ORIGIN,
    WOOD_SINGULARITY,
    WOOD_SINGULARITY_COUNT_KEY,
)
from .identity import canonical_name
from .models import ItemRecord, Listing
from .nbt import CompoundTag
from .price_index import MarketPriceIndex, ModifierPriceTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Valuation:
    canonical_name: str
    base_value: float
    added_modifier_value: float

    @property
    def estimated_value(self) -> float:
        return self.base_value + self.added_modifier_value


def is_exponential_enchant(enchant_key: str) -> bool:
    return enchant_key in EXPONENTIAL_ENCHANTS or enchant_key.startswith(EXPONENTIAL_ENCHANT_PREFIX)


def enchant_value(enchant_key: str, level: int, unit_price: float) -> float:
    """``P * 2^(L-1)`` for exponential enchantments, ``P`` otherwise."""
    if is_exponential_enchant(enchant_key):
        return math.ldexp(unit_price, level - 1)
    return unit_price


def potato_book_value(count: int, modifiers: ModifierPriceTable) -> float:
    if count <= 0:
        return 0.0
    hot_books = min(count, HOT_POTATO_BOOK_LIMIT)
    fuming_books = max(count - HOT_POTATO_BOOK_LIMIT, 0)
    return modifiers.price(HOT_POTATO_BOOK) * hot_books + modifiers.price(FUMING_POTATO_BOOK) * fuming_books


def _enchantments_apply(listing: Listing, record: ItemRecord, extra: CompoundTag) -> bool:
    if record.raw_type_id == ENCHANTED_BOOK_ID:
        return False
    origin = extra.get_string(ORIGIN_TAG_KEY)
    if origin is None or origin == UNKNOWN_ORIGIN:
        return False
    return DUNGEON_LORE_MARKER not in listing.lore_text


def enchantments_value(
    listing: Listing,
    record: ItemRecord,
    extra: CompoundTag,
    modifiers: ModifierPriceTable,
    options: ValuationOptions,
) -> float:
    enchantments = extra.get_compound(ENCHANTMENTS_KEY)
    if enchantments is None or not _enchantments_apply(listing, record, extra):
        return 0.0

    total = 0.0
    for enchant_key in enchantments.keys():
        min_level = options.enchant_min_levels.get(enchant_key)
        level = enchantments.get_int(enchant_key)
        if min_level is None or level is None or level < min_level:
            continue
        try:
            total += enchant_value(enchant_key, level, modifiers.price(enchant_key))
        except OverflowError:  # policy_guard: allow-silent-handler
            logger.warning(
                "Ignoring %s at level %d on listing %s: value out of range", enchant_key, level, listing.identity
            )
    return total


def added_modifier_value(
    listing: Listing,
    record: ItemRecord,
    modifiers: ModifierPriceTable,
    options: ValuationOptions,
) -> Optional[float]:
    """Total modifier value, or ``None`` when the item has no ExtraAttributes."""
    extra = record.extra_attributes
    if extra is None:
        return None

    flags = record.modifier_flags
    value = potato_book_value(flags.get(HOT_POTATO_COUNT_KEY, 0), modifiers)
    if options.add_recombobulator and flags.get(RARITY_UPGRADES_KEY, 0) > 0:
        value += modifiers.price(RECOMBOBULATOR)
    if flags.get(WOOD_SINGULARITY_COUNT_KEY) == 1:
        value += modifiers.price(WOOD_SINGULARITY)
    value += enchantments_value(listing, record, extra, modifiers, options)
    return value


def estimate(
    listing: Listing,
    record: ItemRecord,
    index: MarketPriceIndex,
    modifiers: ModifierPriceTable,
    options: ValuationOptions,
) -> Optional[Valuation]:
    """Value *listing*; ``None`` when the item cannot be valued."""
    added = added_modifier_value(listing, record, modifiers, options)
    if added is None:
        logger.debug("Skipping listing %s: payload has no tag.ExtraAttributes", listing.identity)
        return None
    name = canonical_name(record)
    return Valuation(canonical_name=name, base_value=index.lowest(name), added_modifier_value=added)


def is_flip(price_asked: float, estimated_value: float, options: ValuationOptions) -> bool:
    """Profit margin is strict, the price cap inclusive."""
    return price_asked < estimated_value - options.min_profit and price_asked <= options.max_price_cap


__all__ = [
    "Valuation",
    "added_modifier_value",
    "enchant_value",
    "enchantments_value",
    "estimate",
    "is_exponential_enchant",
    "is_flip",
    "potato_book_value",
]
