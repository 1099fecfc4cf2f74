"""Tagged-variant value tree for binary item tags.

A decoded payload is a tree of :class:`Tag` values. Compounds map names to
child tags, lists hold children of a single element type, and leaves are
strings, numbers or numeric arrays. Accessors on :class:`CompoundTag` return
``None`` when a key is absent or holds a different variant; the ``require_*``
variants raise :class:`TagShapeError` instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Tuple, Union

from ..exceptions import TagShapeError

Number = Union[int, float]


class TagType(IntEnum):
    END = 0
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    BYTE_ARRAY = 7
    STRING = 8
    LIST = 9
    COMPOUND = 10
    INT_ARRAY = 11
    LONG_ARRAY = 12


INTEGRAL_TYPES = frozenset({TagType.BYTE, TagType.SHORT, TagType.INT, TagType.LONG})


class Tag(ABC):
    """Base class of every tag variant."""

    @property
    @abstractmethod
    def tag_type(self) -> TagType:
        """Variant of this tag."""

    @abstractmethod
    def to_python(self) -> Any:
        """Return the plain Python value (dicts, lists, str, numbers)."""


@dataclass(frozen=True)
class NumericTag(Tag):
    kind: TagType
    value: Number

    @property
    def tag_type(self) -> TagType:
        return self.kind

    @property
    def is_integral(self) -> bool:
        return self.kind in INTEGRAL_TYPES

    def to_python(self) -> Number:
        return self.value


@dataclass(frozen=True)
class StringTag(Tag):
    value: str

    @property
    def tag_type(self) -> TagType:
        return TagType.STRING

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True)
class ArrayTag(Tag):
    kind: TagType
    values: Tuple[int, ...]

    @property
    def tag_type(self) -> TagType:
        return self.kind

    def to_python(self) -> list[int]:
        return list(self.values)


@dataclass(frozen=True)
class ListTag(Tag):
    element_type: TagType
    items: Tuple[Tag, ...]

    @property
    def tag_type(self) -> TagType:
        return TagType.LIST

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Tag:
        return self.items[index]

    def to_python(self) -> list[Any]:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class CompoundTag(Tag):
    entries: Mapping[str, Tag]

    def __post_init__(self) -> None:
        if not isinstance(self.entries, MappingProxyType):
            object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    @property
    def tag_type(self) -> TagType:
        return TagType.COMPOUND

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def keys(self) -> Tuple[str, ...]:
        """Entry names in payload order."""
        return tuple(self.entries)

    def get(self, key: str) -> Optional[Tag]:
        return self.entries.get(key)

    def get_compound(self, key: str) -> Optional[CompoundTag]:
        value = self.entries.get(key)
        return value if isinstance(value, CompoundTag) else None

    def get_list(self, key: str) -> Optional[ListTag]:
        value = self.entries.get(key)
        return value if isinstance(value, ListTag) else None

    def get_string(self, key: str) -> Optional[str]:
        value = self.entries.get(key)
        return value.value if isinstance(value, StringTag) else None

    def get_int(self, key: str) -> Optional[int]:
        """Integral value stored under *key* (byte, short, int or long)."""
        value = self.entries.get(key)
        if isinstance(value, NumericTag) and value.is_integral:
            return int(value.value)
        return None

    def get_number(self, key: str) -> Optional[Number]:
        value = self.entries.get(key)
        return value.value if isinstance(value, NumericTag) else None

    def get_path(self, *keys: str) -> Optional[CompoundTag]:
        """Follow nested compounds, e.g. ``get_path("tag", "ExtraAttributes")``."""
        current: Optional[CompoundTag] = self
        for key in keys:
            if current is None:
                return None
            current = current.get_compound(key)
        return current

    def require_compound(self, key: str) -> CompoundTag:
        value = self.get_compound(key)
        if value is None:
            raise TagShapeError(f"Expected compound at '{key}', found {_describe(self.entries.get(key))}", key=key)
        return value

    def require_list(self, key: str) -> ListTag:
        value = self.get_list(key)
        if value is None:
            raise TagShapeError(f"Expected list at '{key}', found {_describe(self.entries.get(key))}", key=key)
        return value

    def require_string(self, key: str) -> str:
        value = self.get_string(key)
        if value is None:
            raise TagShapeError(f"Expected string at '{key}', found {_describe(self.entries.get(key))}", key=key)
        return value

    def to_python(self) -> dict[str, Any]:
        return {key: value.to_python() for key, value in self.entries.items()}


def _describe(tag: Optional[Tag]) -> str:
    if tag is None:
        return "nothing"
    return tag.tag_type.name.lower()


__all__ = [
    "ArrayTag",
    "CompoundTag",
    "INTEGRAL_TYPES",
    "ListTag",
    "Number",
    "NumericTag",
    "StringTag",
    "Tag",
    "TagType",
]
