"""Tests for the COM header record."""

from __future__ import annotations

import struct

import pytest
from pydantic import ValidationError

from comextract.container.header import (
    HEADER_PREFIX_SIZE,
    HEADER_SIZE_V0,
    HEADER_SIZE_V2,
    SIGNATURE,
    ComHeader,
)
from tests.comextract.helpers import make_header


class TestLayout:
    """Tests for the byte layout of the header fields."""

    def test_prefix_size(self) -> None:
        assert HEADER_PREFIX_SIZE == 42

    def test_signature_is_ascii_bios(self) -> None:
        assert SIGNATURE.to_bytes(4, "little") == b"BIOS"

    def test_field_offsets(self) -> None:
        raw = make_header(
            version=2,
            compressed_size=0x12345678,
            decompressed_size_shifted=0x0ABC,
            bios_version=b"V2.10",
        )
        assert raw[0:2] == b"\x00\x00"
        assert raw[2] == 2
        assert raw[3:7] == b"BIOS"
        assert raw[11:27] == b"V2.10".ljust(16, b"\x00")
        assert raw[27] == 1
        assert raw[36:40] == bytes.fromhex("78563412")
        assert raw[40:42] == bytes.fromhex("bc0a")

    def test_parse_at_offset(self) -> None:
        raw = b"\xee" * 5 + make_header(compressed_size=10, decompressed_size_shifted=3)
        header = ComHeader.parse(raw, 5)
        assert header.zero == 0
        assert header.signature == SIGNATURE
        assert header.compressed_size == 10
        assert header.decompressed_size_shifted == 3

    def test_pack_inverts_parse(self) -> None:
        raw = make_header(compressed_size=7, decompressed_size_shifted=1)[:HEADER_PREFIX_SIZE]
        assert ComHeader.parse(raw).pack() == raw

    def test_parse_truncated(self) -> None:
        with pytest.raises(struct.error):
            ComHeader.parse(b"\x00" * (HEADER_PREFIX_SIZE - 1))


def blank_header(**fields: int) -> ComHeader:
    """Parse a header with zero sizes and the given overrides."""
    fields.setdefault("compressed_size", 0)
    fields.setdefault("decompressed_size_shifted", 0)
    return ComHeader.parse(make_header(**fields))


class TestDerivedFields:
    """Tests for sizes and strings derived from the raw fields."""

    @pytest.mark.parametrize(
        ("version", "size", "known"),
        [
            (0, HEADER_SIZE_V0, True),
            (2, HEADER_SIZE_V2, True),
            (1, HEADER_SIZE_V2, False),
            (0xFF, HEADER_SIZE_V2, False),
        ],
    )
    def test_header_size(self, version: int, size: int, known: bool) -> None:
        header = blank_header(version=version)
        assert header.header_size == size
        assert header.is_known_version is known

    def test_decompressed_size_is_shifted(self) -> None:
        header = blank_header(decompressed_size_shifted=0x1000)
        assert header.decompressed_size == 0x400000

    def test_version_string_stops_at_nul(self) -> None:
        raw = bytearray(make_header(compressed_size=0, decompressed_size_shifted=0))
        raw[11:27] = b"V1.80\x00garbage\x00\x00\x00"
        assert ComHeader.parse(raw).version_string == "V1.80"

    def test_compressed_flag(self) -> None:
        stored = blank_header(compressed=0)
        packed = blank_header(compressed=1)
        assert not stored.is_compressed
        assert packed.is_compressed


class TestModel:
    """Tests for pydantic validation of the record."""

    def test_frozen(self) -> None:
        header = blank_header()
        with pytest.raises(ValidationError):
            header.compressed = 2  # type: ignore[misc]

    def test_field_width_enforced(self) -> None:
        header = blank_header()
        with pytest.raises(ValidationError):
            header.copy(decompressed_size_shifted=0x10000)

    def test_bios_version_length_enforced(self) -> None:
        header = blank_header()
        with pytest.raises(ValidationError):
            header.copy(bios_version=b"short")
