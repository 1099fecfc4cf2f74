"""Tests for canonical item names."""

from __future__ import annotations

import pytest

from skyflip.identity import canonical_name
from skyflip.item_decoder import decode_item
from skyflip.models import ItemRecord
from tests.helpers.nbt_builder import compound, enchantments, item_payload, pet_info, string


def _record(item_id: str, **kwargs) -> ItemRecord:
    return decode_item(item_payload(item_id, **kwargs))


class TestCanonicalName:
    """Tests for canonical_name."""

    def test_plain_item_uses_raw_id(self) -> None:
        assert canonical_name(_record("HYPERION")) == "HYPERION"

    def test_enchanted_book_uses_first_enchantment(self) -> None:
        record = _record("ENCHANTED_BOOK", extra={"enchantments": enchantments(ultimate_wise=5, sharpness=6)})
        assert canonical_name(record) == "ULTIMATE_WISE"

    def test_enchanted_book_without_enchantments(self) -> None:
        assert canonical_name(_record("ENCHANTED_BOOK")) == "ENCHANTED_BOOK"
        assert canonical_name(_record("ENCHANTED_BOOK", extra={"enchantments": compound()})) == "ENCHANTED_BOOK"

    def test_pet_name_from_pet_info(self) -> None:
        record = _record("PET", extra={"petInfo": pet_info(type="ENDER_DRAGON", tier="LEGENDARY")})
        assert canonical_name(record) == "LEGENDARY_ENDER_DRAGON_PET"

    def test_tier_boost_promotes_epic_pet(self) -> None:
        record = _record("PET", extra={"petInfo": pet_info(type="BLUE_WHALE", tier="EPIC", heldItem="PET_ITEM_TIER_BOOST")})
        assert canonical_name(record) == "LEGENDARY_BLUE_WHALE_PET"

    def test_tier_boost_only_promotes_epic(self) -> None:
        record = _record("PET", extra={"petInfo": pet_info(type="BEE", tier="RARE", heldItem="PET_ITEM_TIER_BOOST")})
        assert canonical_name(record) == "RARE_BEE_PET"

    @pytest.mark.parametrize(
        "raw_info",
        ["{not json", '["list"]', '{"tier": "EPIC"}', '{"type": "BEE", "tier": 3}'],
    )
    def test_unusable_pet_info_falls_back(self, raw_info: str) -> None:
        assert canonical_name(_record("PET", extra={"petInfo": string(raw_info)})) == "PET"

    def test_missing_extra_attributes(self) -> None:
        record = ItemRecord(raw_type_id="X", stack_count=1, attributes=compound(tag=compound()))
        assert canonical_name(record) == "UNKNOWN_ITEM"
