"""Image links for flipped items.

Custom heads carry their skin texture inside the payload
(``tag.SkullOwner.Properties.textures[0].Value`` is base64 JSON); those get a
head render link. Everything else gets the generic item render by raw id.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Optional

from .constants.network import HEAD_IMAGE_URL, ITEM_IMAGE_URL
from .models import ItemRecord
from .nbt import CompoundTag

logger = logging.getLogger(__name__)

_TEXTURE_MARKER = "texture/"


def _texture_value(attributes: CompoundTag) -> Optional[str]:
    properties = attributes.get_path("tag", "SkullOwner", "Properties")
    if properties is None:
        return None
    textures = properties.get_list("textures")
    if textures is None or len(textures) == 0 or not isinstance(textures[0], CompoundTag):
        return None
    return textures[0].get_string("Value")


def _texture_id(encoded: str) -> Optional[str]:
    try:
        texture_json = json.loads(base64.b64decode(encoded).decode("utf-8"))
    except (binascii.Error, ValueError) as exc:  # policy_guard: allow-silent-handler
        logger.warning("Error decoding SkullOwner texture for image URL: %s", exc)
        return None

    textures = texture_json.get("textures") if isinstance(texture_json, dict) else None
    skin = textures.get("SKIN") if isinstance(textures, dict) else None
    url = skin.get("url") if isinstance(skin, dict) else None
    if not isinstance(url, str) or _TEXTURE_MARKER not in url:
        return None
    return url.split(_TEXTURE_MARKER, 1)[1] or None


def image_url(record: ItemRecord) -> str:
    encoded = _texture_value(record.attributes)
    texture_id = _texture_id(encoded) if encoded else None
    if texture_id:
        return HEAD_IMAGE_URL.format(texture_id=texture_id)
    return ITEM_IMAGE_URL.format(item_id=record.raw_type_id)


__all__ = ["image_url"]
