"""Tests for the binary tag parser."""

from __future__ import annotations

import struct

import pytest

from skyflip.exceptions import DecodeError, TagParseError
from skyflip.nbt import CompoundTag, ListTag, NumericTag, StringTag, TagReader, TagType, parse_tag_tree
from tests.helpers.nbt_builder import (
    byte,
    compound,
    double,
    encode_root,
    int_array,
    int_tag,
    list_of,
    long_tag,
    short,
    string,
)


class TestParseTagTree:
    """Tests for parsing well-formed streams."""

    def test_parses_every_scalar_variant(self) -> None:
        """Numeric, string and array payloads round into typed tags."""
        root = compound(
            b=byte(-3),
            s=short(300),
            i=int_tag(70000),
            l=long_tag(2**40),
            d=double(1.5),
            text=string("Hyperion"),
            ints=int_array(1, 2, 3),
        )

        parsed = parse_tag_tree(encode_root(root, name="root"))

        assert parsed.get("b") == NumericTag(TagType.BYTE, -3)
        assert parsed.get_int("s") == 300
        assert parsed.get_int("i") == 70000
        assert parsed.get_int("l") == 2**40
        assert parsed.get_number("d") == 1.5
        assert parsed.get_string("text") == "Hyperion"
        assert parsed.get("ints").to_python() == [1, 2, 3]

    def test_preserves_compound_key_order(self) -> None:
        """Entry order follows the stream."""
        root = compound(zeta=byte(1), alpha=byte(2), mid=byte(3))

        assert parse_tag_tree(encode_root(root)).keys() == ("zeta", "alpha", "mid")

    def test_nested_lists_and_compounds(self) -> None:
        """Lists of compounds are parsed recursively."""
        root = compound(i=list_of(TagType.COMPOUND, compound(Count=byte(2), tag=compound(name=string("x")))))

        parsed = parse_tag_tree(encode_root(root))
        items = parsed.get_list("i")

        assert isinstance(items, ListTag)
        assert items.element_type == TagType.COMPOUND
        assert len(items) == 1
        assert isinstance(items[0], CompoundTag)
        assert items[0].get_path("tag").get_string("name") == "x"

    def test_empty_list_with_end_element_type(self) -> None:
        """An empty list may declare element type end."""
        parsed = parse_tag_tree(encode_root(compound(lore=list_of(TagType.END))))
        assert len(parsed.get_list("lore")) == 0

    def test_modified_utf8_nul_is_decoded(self) -> None:
        """Java's two-byte NUL encoding is accepted."""
        raw = b"\x0a\x00\x00" + b"\x08" + struct.pack(">H", 4) + b"name" + struct.pack(">H", 3) + b"a\xc0\x80" + b"\x00"
        assert parse_tag_tree(raw).get_string("name") == "a\x00"

    def test_reader_reports_offset(self) -> None:
        """The reader consumes exactly the encoded bytes."""
        raw = encode_root(compound(x=string("abc")))
        reader = TagReader(raw)
        reader.read_root()
        assert reader.offset == len(raw)


class TestMalformedStreams:
    """Tests for rejected input."""

    def test_empty_input(self) -> None:
        with pytest.raises(TagParseError):
            parse_tag_tree(b"")

    def test_truncated_input(self) -> None:
        raw = encode_root(compound(text=string("truncated value")))
        with pytest.raises(TagParseError, match="Unexpected end"):
            parse_tag_tree(raw[:-5])

    def test_unknown_tag_type(self) -> None:
        raw = b"\x0a\x00\x00" + b"\x63" + struct.pack(">H", 1) + b"x"
        with pytest.raises(TagParseError, match="Unknown tag type 99"):
            parse_tag_tree(raw)

    def test_non_compound_root(self) -> None:
        raw = b"\x08" + struct.pack(">H", 0) + struct.pack(">H", 1) + b"x"
        with pytest.raises(TagParseError, match="Root tag must be a compound"):
            parse_tag_tree(raw)

    def test_negative_list_length(self) -> None:
        raw = b"\x0a\x00\x00" + b"\x09" + struct.pack(">H", 1) + b"l" + b"\x01" + struct.pack(">i", -1) + b"\x00"
        with pytest.raises(TagParseError, match="Negative list length"):
            parse_tag_tree(raw)

    def test_negative_array_length(self) -> None:
        raw = b"\x0a\x00\x00" + b"\x07" + struct.pack(">H", 1) + b"a" + struct.pack(">i", -4) + b"\x00"
        with pytest.raises(TagParseError, match="Negative array length"):
            parse_tag_tree(raw)

    def test_depth_limit(self) -> None:
        tag = compound(leaf=byte(1))
        for _ in range(8):
            tag = compound(child=tag)
        with pytest.raises(TagParseError, match="nesting deeper"):
            TagReader(encode_root(tag), max_depth=4).read_root()

    def test_default_depth_limit_rejects_deep_nesting(self) -> None:
        """Hundreds of nested compounds fail with a parse error, not a crash."""
        raw = b"\x0a\x00\x00" * 481 + b"\x00" * 481
        with pytest.raises(TagParseError, match="nesting deeper than 64"):
            parse_tag_tree(raw)

    def test_recursion_error_becomes_parse_error(self, monkeypatch) -> None:
        def exhausted(_self):
            raise RecursionError("maximum recursion depth exceeded")

        monkeypatch.setattr(TagReader, "read_root", exhausted)
        with pytest.raises(TagParseError, match="recursion limit"):
            parse_tag_tree(b"\x0a\x00\x00\x00")

    def test_parse_errors_are_decode_errors(self) -> None:
        """Callers can contain parse failures as DecodeError."""
        with pytest.raises(DecodeError):
            parse_tag_tree(b"\x0a")
