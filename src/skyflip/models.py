"""Data structures flowing through the polling pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .exceptions import DecodeError
from .nbt import CompoundTag

UUID_HEX_LENGTH = 32


def now_ms() -> int:
    return int(time.time() * 1000)


def reformat_uuid(raw_id: str) -> str:
    """Insert dashes into a 32-character hex id (8-4-4-4-12); other ids pass through."""
    if raw_id is None or len(raw_id) != UUID_HEX_LENGTH:
        return raw_id
    return f"{raw_id[0:8]}-{raw_id[8:12]}-{raw_id[12:16]}-{raw_id[16:20]}-{raw_id[20:32]}"


def strip_uuid(formatted_id: str) -> str:
    return formatted_id.replace("-", "")


def _require_field(record: Mapping[str, Any], key: str) -> Any:
    if key not in record or record[key] is None:
        raise DecodeError(f"Listing record missing '{key}'", field=key)
    return record[key]


@dataclass(frozen=True)
class Listing:
    """One marketplace entry as fetched from the feed."""

    identity: str
    is_fixed_price: bool
    price_asked: float
    end_timestamp_ms: int
    item_payload: str
    lore_text: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_feed(cls, record: Mapping[str, Any]) -> "Listing":
        """Build a listing from a feed record.

        Raises:
            DecodeError: If required fields are missing or have the wrong type
        """
        if not isinstance(record, Mapping):
            raise DecodeError(f"Listing record must be an object, got {type(record).__name__}")

        identity = _require_field(record, "uuid")
        if not isinstance(identity, str) or not identity.strip():
            raise DecodeError("Listing record has an empty 'uuid'", field="uuid")

        try:
            price = float(_require_field(record, "starting_bid"))
            end = int(_require_field(record, "end"))
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"Listing {identity} has non-numeric price or end time") from exc

        payload = record.get("item_bytes")
        if isinstance(payload, Mapping):
            # Single-auction endpoints wrap the payload as {"type": 0, "data": "..."}
            payload = payload.get("data")
        if not isinstance(payload, str):
            payload = ""

        lore = record.get("item_lore")
        return cls(
            identity=identity,
            is_fixed_price=record.get("bin") is True,
            price_asked=price,
            end_timestamp_ms=end,
            item_payload=payload,
            lore_text=lore if isinstance(lore, str) else "",
            raw=record,
        )

    def is_active(self, at_ms: Optional[int] = None) -> bool:
        """Fixed-price and ending strictly after *at_ms*."""
        reference = now_ms() if at_ms is None else at_ms
        return self.is_fixed_price and self.end_timestamp_ms > reference


@dataclass(frozen=True)
class ItemRecord:
    """Decoded item payload."""

    raw_type_id: str
    stack_count: int
    attributes: CompoundTag
    modifier_flags: Mapping[str, int] = field(default_factory=dict)

    @property
    def extra_attributes(self) -> Optional[CompoundTag]:
        return self.attributes.get_path("tag", "ExtraAttributes")


@dataclass(frozen=True)
class FlipEvent:
    """A listing priced below its estimated value, ready for notification."""

    canonical_name: str
    price_asked: float
    estimated_value: float
    added_modifier_value: float
    opaque_id: str
    image_url: str
    source_listing: Listing

    @property
    def profit(self) -> float:
        return self.estimated_value - self.price_asked

    @property
    def profit_percentage(self) -> float:
        if self.price_asked <= 0:
            return 0.0
        return self.profit / self.price_asked * 100

    def time_ending(self, at_ms: Optional[int] = None) -> str:
        """Remaining time as ``"<m>m <s>s"`` or ``"Ended"``."""
        reference = now_ms() if at_ms is None else at_ms
        remaining_ms = self.source_listing.end_timestamp_ms - reference
        if remaining_ms < 0:
            return "Ended"
        total_seconds = remaining_ms // 1000
        minutes, seconds = divmod(total_seconds, 60)
        return f"{minutes}m {seconds}s"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.canonical_name,
            "price": self.price_asked,
            "value": self.estimated_value,
            "extra_value": self.added_modifier_value,
            "id": self.opaque_id,
            "image": self.image_url,
        }


__all__ = ["FlipEvent", "ItemRecord", "Listing", "now_ms", "reformat_uuid", "strip_uuid"]
