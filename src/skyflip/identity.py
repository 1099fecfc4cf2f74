"""Canonical item names used to bucket listings for pricing.

Most items are priced by their raw type id. Enchanted books are priced by the
enchantment they carry and pets by rarity and species, because the raw id alone
does not distinguish them.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from .constants.items import (
    ENCHANTED_BOOK_ID,
    ENCHANTMENTS_KEY,
    PET_ID,
    PET_INFO_KEY,
    PET_TIER_AFTER_BOOST,
    PET_TIER_BEFORE_BOOST,
    PET_TIER_BOOST_ITEM,
    UNKNOWN_ITEM,
)
from .models import ItemRecord
from .nbt import CompoundTag

logger = logging.getLogger(__name__)


def _enchanted_book_name(extra: CompoundTag) -> Optional[str]:
    enchantments = extra.get_compound(ENCHANTMENTS_KEY)
    if enchantments is None or len(enchantments) == 0:
        return None
    return enchantments.keys()[0].upper()


def _pet_name(extra: CompoundTag) -> Optional[str]:
    raw_info = extra.get_string(PET_INFO_KEY)
    if raw_info is None:
        return None
    try:
        pet_info = json.loads(raw_info)
    except json.JSONDecodeError as exc:  # policy_guard: allow-silent-handler
        logger.warning("Error parsing petInfo to determine name: %s", exc)
        return None
    if not isinstance(pet_info, dict):
        return None

    rarity = pet_info.get("tier")
    species = pet_info.get("type")
    if not isinstance(rarity, str) or not isinstance(species, str):
        logger.warning("petInfo is missing 'tier' or 'type'; using raw id")
        return None
    if pet_info.get("heldItem") == PET_TIER_BOOST_ITEM and rarity == PET_TIER_BEFORE_BOOST:
        rarity = PET_TIER_AFTER_BOOST
    return f"{rarity}_{species}_PET"


def canonical_name(record: ItemRecord) -> str:
    """Return the pricing key for *record*; never raises."""
    extra = record.extra_attributes
    if extra is None or extra.get_string("id") is None:
        return UNKNOWN_ITEM

    name = extra.get_string("id")
    derived: Optional[str] = None
    if name == ENCHANTED_BOOK_ID:
        derived = _enchanted_book_name(extra)
    elif name == PET_ID:
        derived = _pet_name(extra)
    return derived if derived is not None else name


__all__ = ["canonical_name"]
