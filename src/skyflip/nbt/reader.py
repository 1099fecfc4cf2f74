"""Parser for big-endian binary tag streams.

The stream starts with a named compound (type byte, UTF-8 name, payload).
Strings are length-prefixed with an unsigned short; lists carry their element
type and a signed int length; arrays carry a signed int length followed by
their elements. Any truncation or unknown type id raises ``TagParseError``.
"""

from __future__ import annotations

import struct
from typing import Callable, Dict, List

from ..exceptions import TagParseError
from .tags import ArrayTag, CompoundTag, ListTag, NumericTag, StringTag, Tag, TagType

MAX_DEPTH = 64

_UBYTE = struct.Struct(">B")
_USHORT = struct.Struct(">H")
_INT = struct.Struct(">i")

_NUMERIC_FORMATS: Dict[TagType, struct.Struct] = {
    TagType.BYTE: struct.Struct(">b"),
    TagType.SHORT: struct.Struct(">h"),
    TagType.INT: _INT,
    TagType.LONG: struct.Struct(">q"),
    TagType.FLOAT: struct.Struct(">f"),
    TagType.DOUBLE: struct.Struct(">d"),
}

_ARRAY_ELEMENT_FORMATS: Dict[TagType, str] = {
    TagType.BYTE_ARRAY: "b",
    TagType.INT_ARRAY: "i",
    TagType.LONG_ARRAY: "q",
}


def _decode_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:  # policy_guard: allow-silent-handler
        # Java writes NUL as C0 80 and supplementary characters as surrogate pairs
        return raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", errors="replace")


class TagReader:
    """Single-use cursor over one binary tag stream."""

    def __init__(self, data: bytes, *, max_depth: int = MAX_DEPTH) -> None:
        self._data = memoryview(data)
        self._offset = 0
        self._max_depth = max_depth
        self._payload_readers: Dict[TagType, Callable[[TagType, int], Tag]] = {
            TagType.STRING: self._read_string_tag,
            TagType.LIST: self._read_list,
            TagType.COMPOUND: self._read_compound,
        }

    @property
    def offset(self) -> int:
        return self._offset

    def read_root(self) -> CompoundTag:
        """Read the named root compound."""
        tag_type = self._read_type()
        if tag_type != TagType.COMPOUND:
            raise TagParseError(f"Root tag must be a compound, found {tag_type.name.lower()}", offset=0)
        self._read_text()
        return self._read_compound(TagType.COMPOUND, 0)

    def _take(self, size: int) -> bytes:
        if size < 0:
            raise TagParseError(f"Negative length {size} at offset {self._offset}", offset=self._offset)
        end = self._offset + size
        if end > len(self._data):
            raise TagParseError(
                f"Unexpected end of tag data at offset {self._offset} (needed {size} bytes, {len(self._data) - self._offset} left)",
                offset=self._offset,
            )
        chunk = self._data[self._offset : end].tobytes()
        self._offset = end
        return chunk

    def _unpack(self, fmt: struct.Struct):
        return fmt.unpack(self._take(fmt.size))[0]

    def _read_type(self) -> TagType:
        raw = self._unpack(_UBYTE)
        try:
            return TagType(raw)
        except ValueError as exc:
            raise TagParseError(f"Unknown tag type {raw} at offset {self._offset - 1}", offset=self._offset - 1) from exc

    def _read_text(self) -> str:
        length = self._unpack(_USHORT)
        return _decode_text(self._take(length))

    def _read_payload(self, tag_type: TagType, depth: int) -> Tag:
        if depth > self._max_depth:
            raise TagParseError(f"Tag nesting deeper than {self._max_depth}", offset=self._offset)
        numeric = _NUMERIC_FORMATS.get(tag_type)
        if numeric is not None:
            return NumericTag(tag_type, self._unpack(numeric))
        element_format = _ARRAY_ELEMENT_FORMATS.get(tag_type)
        if element_format is not None:
            return self._read_array(tag_type, element_format)
        reader = self._payload_readers.get(tag_type)
        if reader is None:
            raise TagParseError(f"Tag type {tag_type.name.lower()} has no payload", offset=self._offset)
        return reader(tag_type, depth)

    def _read_string_tag(self, _tag_type: TagType, _depth: int) -> StringTag:
        return StringTag(self._read_text())

    def _read_array(self, tag_type: TagType, element_format: str) -> ArrayTag:
        length = self._unpack(_INT)
        if length < 0:
            raise TagParseError(f"Negative array length {length} at offset {self._offset}", offset=self._offset)
        fmt = struct.Struct(f">{length}{element_format}")
        return ArrayTag(tag_type, tuple(fmt.unpack(self._take(fmt.size))))

    def _read_list(self, _tag_type: TagType, depth: int) -> ListTag:
        element_type = self._read_type()
        length = self._unpack(_INT)
        if length < 0:
            raise TagParseError(f"Negative list length {length} at offset {self._offset}", offset=self._offset)
        if element_type == TagType.END and length > 0:
            raise TagParseError("Non-empty list declares element type end", offset=self._offset)
        items: List[Tag] = [self._read_payload(element_type, depth + 1) for _ in range(length)]
        return ListTag(element_type, tuple(items))

    def _read_compound(self, _tag_type: TagType, depth: int) -> CompoundTag:
        entries: Dict[str, Tag] = {}
        while True:
            tag_type = self._read_type()
            if tag_type == TagType.END:
                return CompoundTag(entries)
            name = self._read_text()
            entries[name] = self._read_payload(tag_type, depth + 1)


def parse_tag_tree(data: bytes) -> CompoundTag:
    """Parse *data* as a root compound tag tree."""

    if not data:
        raise TagParseError("Tag data is empty", offset=0)
    try:
        return TagReader(data).read_root()
    except RecursionError as exc:
        raise TagParseError("Tag nesting exceeds the interpreter recursion limit", offset=0) from exc


__all__ = ["MAX_DEPTH", "TagReader", "parse_tag_tree"]
