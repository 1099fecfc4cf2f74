"""Decode base64 item payloads into :class:`ItemRecord` values.

Payloads are normally gzip-wrapped binary tag trees, but some are stored
uncompressed. Decoding tries gzip first and falls back to parsing the raw bytes;
only when both fail is a :class:`DecodeError` raised, carrying both causes.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import logging
import zlib
from typing import Dict, Optional

from .constants.items import MODIFIER_COUNT_KEYS
from .exceptions import DecodeError, TagShapeError
from .models import ItemRecord
from .nbt import CompoundTag, NumericTag, parse_tag_tree

logger = logging.getLogger(__name__)

ITEM_LIST_KEY = "i"
COUNT_KEY = "Count"

_GZIP_ERRORS = (OSError, EOFError, zlib.error)


def _b64decode(payload: str) -> bytes:
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError("Item payload is not valid base64", payload_length=len(payload)) from exc


def _parse_gzipped(raw: bytes) -> CompoundTag:
    try:
        decompressed = gzip.decompress(raw)
    except _GZIP_ERRORS as exc:
        raise DecodeError(f"Not a valid gzip stream: {exc}") from exc
    return parse_tag_tree(decompressed)


def parse_payload_bytes(raw: bytes) -> CompoundTag:
    """Parse payload bytes, gzip-wrapped or not, into the root compound.

    Raises:
        DecodeError: When neither the gzip attempt nor the raw attempt succeeds;
            ``gzip_error`` and ``raw_error`` hold the two causes.
    """
    gzip_error: Optional[DecodeError] = None
    try:
        return _parse_gzipped(raw)
    except DecodeError as exc:  # policy_guard: allow-silent-handler
        gzip_error = exc
        logger.debug("Gzip decode attempt failed (length %d): %s; trying uncompressed", len(raw), exc)

    try:
        root = parse_tag_tree(raw)
    except DecodeError as raw_error:
        raise DecodeError(
            "Failed to decode item payload as gzip-wrapped or uncompressed tags. "
            f"Gzip attempt: {type(gzip_error).__name__}: {gzip_error}. "
            f"Uncompressed attempt: {type(raw_error).__name__}: {raw_error}",
            gzip_error=gzip_error,
            raw_error=raw_error,
            payload_length=len(raw),
        ) from raw_error

    logger.debug("Item payload decoded uncompressed (length %d)", len(raw))
    return root


def _first_item(root: CompoundTag) -> CompoundTag:
    items = root.get_list(ITEM_LIST_KEY)
    if items is None:
        raise TagShapeError(f"Payload root has no '{ITEM_LIST_KEY}' list", key=ITEM_LIST_KEY)
    if len(items) == 0 or not isinstance(items[0], CompoundTag):
        raise TagShapeError(f"Item list '{ITEM_LIST_KEY}' is empty or its first element is not a compound", key=ITEM_LIST_KEY)
    return items[0]


def _raw_type_id(item: CompoundTag) -> str:
    extra = item.get_path("tag", "ExtraAttributes")
    type_id = extra.get_string("id") if extra is not None else None
    if type_id is None:
        raise TagShapeError("Item is missing the 'tag.ExtraAttributes.id' string", key="id")
    return type_id


def _stack_count(item: CompoundTag) -> int:
    count_tag = item.get(COUNT_KEY)
    if count_tag is None:
        logger.warning("Item payload has no '%s' field; defaulting to 1", COUNT_KEY)
        return 1
    if not isinstance(count_tag, NumericTag) or not count_tag.is_integral:
        logger.warning("Unsupported tag type %s for '%s'; defaulting to 1", count_tag.tag_type.name.lower(), COUNT_KEY)
        return 1
    count = int(count_tag.value)
    if count < 1:
        logger.warning("Item payload has non-positive '%s' %d; using 1", COUNT_KEY, count)
        return 1
    return count


def _modifier_flags(item: CompoundTag) -> Dict[str, int]:
    extra = item.get_path("tag", "ExtraAttributes")
    if extra is None:
        return {}
    flags: Dict[str, int] = {}
    for key in MODIFIER_COUNT_KEYS:
        value = extra.get_int(key)
        if value is not None:
            flags[key] = value
    return flags


def record_from_root(root: CompoundTag) -> ItemRecord:
    """Validate a parsed payload tree and extract the first item."""
    item = _first_item(root)
    return ItemRecord(
        raw_type_id=_raw_type_id(item),
        stack_count=_stack_count(item),
        attributes=item,
        modifier_flags=_modifier_flags(item),
    )


def decode_item(payload: str) -> ItemRecord:
    """Decode a base64 item payload.

    Raises:
        DecodeError: If the payload is not base64, not a tag tree, or lacks the
            item structure (``i[0].tag.ExtraAttributes.id``)
    """
    return record_from_root(parse_payload_bytes(_b64decode(payload)))


__all__ = ["decode_item", "parse_payload_bytes", "record_from_root"]
