"""Tests for the market price index."""

from __future__ import annotations

from unittest.mock import MagicMock

from skyflip.exceptions import DecodeError
from skyflip.models import Listing
from skyflip.price_index import MarketPriceIndex, ModifierPriceTable
from tests.helpers.nbt_builder import byte, enchantments, feed_record


class TestRebuild:
    """Tests for MarketPriceIndex.rebuild."""

    def test_keeps_lowest_unit_price(self, listing_factory) -> None:
        index = MarketPriceIndex()
        stats = index.rebuild(
            [
                listing_factory("1", 900, "HYPERION"),
                listing_factory("2", 700, "HYPERION"),
                listing_factory("3", 800, "HYPERION"),
                listing_factory("4", 640, "ENCHANTED_DIAMOND", count=byte(64)),
            ]
        )

        assert index.lowest("HYPERION") == 700.0
        assert index.second_lowest("HYPERION") == 800.0
        assert index.lowest("ENCHANTED_DIAMOND") == 10.0
        assert stats.indexed_listings == 4
        assert stats.indexed_names == 2

    def test_enchanted_books_indexed_by_enchantment(self, listing_factory) -> None:
        index = MarketPriceIndex()
        index.rebuild([listing_factory("1", 5_000_000, "ENCHANTED_BOOK", extra={"enchantments": enchantments(ultimate_wise=1)})])
        assert index.lowest("ULTIMATE_WISE") == 5_000_000.0
        assert "ENCHANTED_BOOK" not in index

    def test_missing_name_reads_zero_without_creating_entry(self, listing_factory) -> None:
        index = MarketPriceIndex()
        index.rebuild([listing_factory("1", 100, "FOO")])

        assert index.lowest("BAR") == 0.0
        assert index.second_lowest("BAR") == 0.0
        assert index.get("BAR") is None
        assert "BAR" not in index
        assert len(index) == 1

    def test_single_observation_second_lowest_equals_lowest(self, listing_factory) -> None:
        index = MarketPriceIndex()
        index.rebuild([listing_factory("1", 100, "FOO")])
        assert index.second_lowest("FOO") == 100.0

    def test_undecodable_listings_skipped(self, listing_factory) -> None:
        index = MarketPriceIndex()
        stats = index.rebuild([listing_factory("1", 100, payload="!!!"), listing_factory("2", 200, "FOO")])

        assert stats.skipped_listings == 1
        assert stats.indexed_listings == 1
        assert index.snapshot() == {"FOO": 200.0}

    def test_every_decoded_listing_is_recorded(self, listing_factory) -> None:
        index = MarketPriceIndex()
        stats = index.rebuild([listing_factory("1", 0, "FOO"), listing_factory("2", 40, "FOO")])

        assert stats.indexed_listings == 2
        assert index.observations("FOO") == (0.0, 40.0)

    def test_unexpected_listing_error_skipped(self, listing_factory, caplog) -> None:
        resolver = MagicMock(side_effect=[RuntimeError("bug"), "FOO"])
        index = MarketPriceIndex(resolver=resolver)

        stats = index.rebuild([listing_factory("1", 100, "FOO"), listing_factory("2", 200, "FOO")])

        assert stats.skipped_listings == 1
        assert index.snapshot() == {"FOO": 200.0}
        assert "Unexpected error indexing listing 1" in caplog.text

    def test_overrides_replace_observations(self, listing_factory) -> None:
        index = MarketPriceIndex({"DRAGON_SLAYER": 1_000_000})
        index.rebuild([listing_factory("1", 5, "DRAGON_SLAYER")])

        assert index.lowest("DRAGON_SLAYER") == 1_000_000.0
        assert index.observations("DRAGON_SLAYER") == (1_000_000.0,)

    def test_overrides_present_for_empty_batch(self) -> None:
        index = MarketPriceIndex({"DRAGON_SLAYER": 1_000_000})
        index.rebuild([])
        assert index.snapshot() == {"DRAGON_SLAYER": 1_000_000.0}

    def test_rebuild_is_pure(self, listing_factory) -> None:
        """Two rebuilds from the same batch give the same index regardless of history."""
        batch = [listing_factory("1", 300, "FOO"), listing_factory("2", 100, "BAR")]
        fresh = MarketPriceIndex()
        fresh.rebuild(batch)

        reused = MarketPriceIndex()
        reused.rebuild([listing_factory("9", 1, "STALE")])
        reused.rebuild(batch)

        assert reused.snapshot() == fresh.snapshot()
        assert "STALE" not in reused

    def test_injected_decoder_and_resolver(self) -> None:
        decoder = MagicMock(side_effect=[MagicMock(stack_count=2), DecodeError("bad")])
        resolver = MagicMock(return_value="CUSTOM")
        index = MarketPriceIndex(decoder=decoder, resolver=resolver)
        listings = [Listing.from_feed(feed_record(str(n), 50, "p")) for n in range(2)]

        stats = index.rebuild(listings)

        assert index.lowest("CUSTOM") == 25.0
        assert stats.skipped_listings == 1


class TestModifierPriceTable:
    def test_upper_cases_lookup(self, listing_factory) -> None:
        index = MarketPriceIndex()
        index.rebuild([listing_factory("1", 1500, "ENCHANTED_BOOK", extra={"enchantments": enchantments(sharpness=6)})])
        table = ModifierPriceTable(index)

        assert table.price("sharpness") == 1500.0
        assert table.price("unknown_modifier") == 0.0
        assert "UNKNOWN_MODIFIER" not in index

    def test_extra_overrides_take_precedence(self, listing_factory) -> None:
        index = MarketPriceIndex()
        index.rebuild([listing_factory("1", 10, "HOT_POTATO_BOOK")])
        table = ModifierPriceTable(index, {"hot_potato_book": 99})
        assert table.price("HOT_POTATO_BOOK") == 99.0
