"""Flip detection over newly added listings."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Set

from .config.settings import ValuationOptions
from .exceptions import ApplicationError, DecodeError
from .item_decoder import decode_item
from .item_images import image_url
from .models import FlipEvent, ItemRecord, Listing, reformat_uuid
from .price_index import MarketPriceIndex, ModifierPriceTable
from .valuation import estimate, is_flip

logger = logging.getLogger(__name__)


class FlipNotifier(Protocol):
    async def notify(self, event: FlipEvent) -> None: ...


class FlipDetector:
    """Values each new listing and notifies once per flipped listing id."""

    def __init__(
        self,
        index: MarketPriceIndex,
        options: ValuationOptions,
        notifiers: Optional[Sequence[FlipNotifier]] = None,
        *,
        decoder: Callable[[str], ItemRecord] = decode_item,
    ) -> None:
        self._index = index
        self._options = options
        self._modifiers = ModifierPriceTable(index)
        self._notifiers: List[FlipNotifier] = list(notifiers or [])
        self._decoder = decoder
        self._notified: Set[str] = set()

    @property
    def notified_ids(self) -> frozenset[str]:
        return frozenset(self._notified)

    def add_notifier(self, notifier: FlipNotifier) -> None:
        self._notifiers.append(notifier)

    async def detect(self, added: Iterable[Listing]) -> List[FlipEvent]:
        """Return the flips found in *added*, notifying as each one is found."""
        events: List[FlipEvent] = []
        for listing in added:
            try:
                event = self._evaluate(listing)
            except Exception:  # policy_guard: allow-broad-except
                logger.exception("Unexpected error evaluating listing %s", listing.identity)
                continue
            if event is None:
                continue
            self._notified.add(listing.identity)
            events.append(event)
            await self._dispatch(event)
        if events:
            logger.info("Found %d flips", len(events))
        return events

    def _evaluate(self, listing: Listing) -> Optional[FlipEvent]:
        if listing.identity in self._notified:
            return None
        if listing.price_asked > self._options.max_price_cap:
            return None

        try:
            record = self._decoder(listing.item_payload)
        except DecodeError as exc:  # policy_guard: allow-silent-handler
            logger.warning("Error decoding item for listing %s: %s", listing.identity, exc)
            return None

        valuation = estimate(listing, record, self._index, self._modifiers, self._options)
        if valuation is None:
            return None
        if not is_flip(listing.price_asked, valuation.estimated_value, self._options):
            return None

        return FlipEvent(
            canonical_name=valuation.canonical_name,
            price_asked=listing.price_asked,
            estimated_value=valuation.estimated_value,
            added_modifier_value=valuation.added_modifier_value,
            opaque_id=reformat_uuid(listing.identity),
            image_url=image_url(record),
            source_listing=listing,
        )

    async def _dispatch(self, event: FlipEvent) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.notify(event)
            except ApplicationError as exc:  # policy_guard: allow-silent-handler
                logger.error("Notifier %s failed for flip %s: %s", type(notifier).__name__, event.opaque_id, exc)
            except Exception:  # policy_guard: allow-broad-except
                logger.exception("Unexpected error in notifier %s for flip %s", type(notifier).__name__, event.opaque_id)


__all__ = ["FlipDetector", "FlipNotifier"]
