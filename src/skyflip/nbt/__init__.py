"""Binary tag (NBT) tree model and parser used by item payloads."""

from .reader import MAX_DEPTH, TagReader, parse_tag_tree
from .tags import ArrayTag, CompoundTag, ListTag, NumericTag, StringTag, Tag, TagType

__all__ = [
    "ArrayTag",
    "CompoundTag",
    "ListTag",
    "MAX_DEPTH",
    "NumericTag",
    "StringTag",
    "Tag",
    "TagReader",
    "TagType",
    "parse_tag_tree",
]
