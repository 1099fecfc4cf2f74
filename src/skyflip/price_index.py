"""Lowest observed unit price per canonical item name.

The index is rebuilt wholesale from a full listing batch and is read-only
between rebuilds. Reads never create entries: a name without observations
prices at ``0.0``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .exceptions import DecodeError
from .identity import canonical_name
from .item_decoder import decode_item
from .models import ItemRecord, Listing

logger = logging.getLogger(__name__)

ItemDecoder = Callable[[str], ItemRecord]
NameResolver = Callable[[ItemRecord], str]


@dataclass(frozen=True)
class RebuildStats:
    indexed_listings: int
    skipped_listings: int
    indexed_names: int


class MarketPriceIndex:
    """Canonical name -> sorted unit prices of the last rebuild."""

    def __init__(
        self,
        overrides: Optional[Mapping[str, float]] = None,
        *,
        decoder: ItemDecoder = decode_item,
        resolver: NameResolver = canonical_name,
    ) -> None:
        self._overrides = MappingProxyType(dict(overrides or {}))
        self._decoder = decoder
        self._resolver = resolver
        self._observations: Mapping[str, Tuple[float, ...]] = MappingProxyType({})

    @property
    def overrides(self) -> Mapping[str, float]:
        return self._overrides

    def rebuild(self, listings: Iterable[Listing]) -> RebuildStats:
        """Replace the index with prices observed in *listings*.

        Listings that fail to decode or resolve are skipped. Configured
        overrides replace whatever was observed for their names.
        """
        observations: Dict[str, List[float]] = defaultdict(list)
        indexed = 0
        skipped = 0
        for listing in listings:
            try:
                record = self._decoder(listing.item_payload)
                name = self._resolver(record)
            except DecodeError as exc:  # policy_guard: allow-silent-handler
                skipped += 1
                logger.warning("Error decoding item for listing %s during market re-index: %s", listing.identity, exc)
                continue
            except Exception:  # policy_guard: allow-broad-except
                skipped += 1
                logger.exception("Unexpected error indexing listing %s", listing.identity)
                continue

            observations[name].append(listing.price_asked / record.stack_count)
            indexed += 1

        for name, price in self._overrides.items():
            observations[name] = [float(price)]

        self._observations = MappingProxyType({name: tuple(sorted(prices)) for name, prices in observations.items()})
        stats = RebuildStats(indexed_listings=indexed, skipped_listings=skipped, indexed_names=len(self._observations))
        logger.info(
            "Market price re-index complete: %d listings across %d names (%d skipped)",
            stats.indexed_listings,
            stats.indexed_names,
            stats.skipped_listings,
        )
        return stats

    def get(self, name: str) -> Optional[float]:
        prices = self._observations.get(name)
        return prices[0] if prices else None

    def lowest(self, name: str) -> float:
        """Lowest unit price for *name*, ``0.0`` when never observed."""
        lowest = self.get(name)
        return lowest if lowest is not None else 0.0

    def second_lowest(self, name: str) -> float:
        """Second-lowest unit price; the lowest when only one was observed."""
        prices = self._observations.get(name)
        if not prices:
            return 0.0
        return prices[1] if len(prices) > 1 else prices[0]

    def observations(self, name: str) -> Tuple[float, ...]:
        return self._observations.get(name, ())

    def snapshot(self) -> Dict[str, float]:
        """Name -> lowest unit price."""
        return {name: prices[0] for name, prices in self._observations.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._observations

    def __len__(self) -> int:
        return len(self._observations)


class ModifierPriceTable:
    """Read-only modifier price lookup over the market index.

    Modifier names are upper-cased before lookup; ``extra_overrides`` take
    precedence over indexed prices.
    """

    def __init__(self, index: MarketPriceIndex, extra_overrides: Optional[Mapping[str, float]] = None) -> None:
        self._index = index
        self._extra = MappingProxyType({name.upper(): float(price) for name, price in (extra_overrides or {}).items()})

    def price(self, modifier_name: str) -> float:
        key = modifier_name.upper()
        if key in self._extra:
            return self._extra[key]
        return self._index.lowest(key)


__all__ = ["MarketPriceIndex", "ModifierPriceTable", "RebuildStats"]
