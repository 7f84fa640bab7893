"""
Toshiba COM file header.

A COM update file embeds one or more payloads, each preceded by a header.
Only the first 42 bytes of the header carry fields; the rest pads it to
256 or 512 bytes depending on the header version.


HEADER LAYOUT
-------------
All fields are little-endian and packed::

    offset  size  field
    ------  ----  -----------------------------
         0     2  zero                       must be 0
         2     1  header_version             0 -> 256-byte header, 2 -> 512
         3     4  signature                  b"BIOS"
         7     2  unk0
         9     2  unk1
        11    16  bios_version               NUL-padded ASCII
        27     1  compressed                 0 = stored, 1 = compressed
        28     4  unk2
        32     4  unk3
        36     4  compressed_size
        40     2  decompressed_size_shifted  size >> 10

The payload starts right after the full header.
"""

from __future__ import annotations

import struct
from typing import Final

from pydantic import Field

from ..types import StrictBaseModel

HEADER_STRUCT: Final = struct.Struct("<HBIHH16sBIIIH")
"""Packed layout of the meaningful header prefix."""

HEADER_PREFIX_SIZE: Final = HEADER_STRUCT.size
"""Number of bytes the header fields occupy (42)."""

SIGNATURE: Final = 0x534F4942
"""The ASCII bytes 'BIOS' read as a little-endian 32-bit word."""

SIGNATURE_OFFSET: Final = 3
"""Offset of the signature within the header."""

HEADER_SIZE_V0: Final = 0x100
"""Full header size for header version 0."""

HEADER_SIZE_V2: Final = 0x200
"""Full header size for header version 2, also assumed for unknown versions."""

DECOMPRESSED_SIZE_SHIFT: Final = 10
"""The decompressed size is stored in units of 1 KiB."""


class ComHeader(StrictBaseModel):
    """The field prefix of a COM payload header."""

    zero: int = Field(ge=0, le=0xFFFF)
    """Leading field, zero in every valid header."""

    header_version: int = Field(ge=0, le=0xFF)
    """Selects the full header size."""

    signature: int = Field(ge=0, le=0xFFFFFFFF)
    """The 'BIOS' signature."""

    unk0: int = Field(ge=0, le=0xFFFF)
    unk1: int = Field(ge=0, le=0xFFFF)

    bios_version: bytes = Field(min_length=16, max_length=16)
    """Raw, NUL-padded BIOS version string."""

    compressed: int = Field(ge=0, le=0xFF)
    """0 for a stored payload, 1 for a compressed one."""

    unk2: int = Field(ge=0, le=0xFFFFFFFF)
    unk3: int = Field(ge=0, le=0xFFFFFFFF)

    compressed_size: int = Field(ge=0, le=0xFFFFFFFF)
    """Size of the payload as stored in the file."""

    decompressed_size_shifted: int = Field(ge=0, le=0xFFFF)
    """Decompressed size divided by 1024."""

    @classmethod
    def parse(cls, data: bytes | bytearray | memoryview, offset: int = 0) -> ComHeader:
        """
        Read the header fields at `offset`.

        Raises:
            struct.error: If fewer than 42 bytes are available.
        """
        (
            zero,
            header_version,
            signature,
            unk0,
            unk1,
            bios_version,
            compressed,
            unk2,
            unk3,
            compressed_size,
            decompressed_size_shifted,
        ) = HEADER_STRUCT.unpack_from(data, offset)
        return cls(
            zero=zero,
            header_version=header_version,
            signature=signature,
            unk0=unk0,
            unk1=unk1,
            bios_version=bios_version,
            compressed=compressed,
            unk2=unk2,
            unk3=unk3,
            compressed_size=compressed_size,
            decompressed_size_shifted=decompressed_size_shifted,
        )

    def pack(self) -> bytes:
        """Serialize the header fields back to their 42-byte layout."""
        return HEADER_STRUCT.pack(
            self.zero,
            self.header_version,
            self.signature,
            self.unk0,
            self.unk1,
            self.bios_version,
            self.compressed,
            self.unk2,
            self.unk3,
            self.compressed_size,
            self.decompressed_size_shifted,
        )

    @property
    def is_known_version(self) -> bool:
        return self.header_version in (0, 2)

    @property
    def header_size(self) -> int:
        """Full header size; the payload starts this many bytes after the header."""
        if self.header_version == 0:
            return HEADER_SIZE_V0
        return HEADER_SIZE_V2

    @property
    def decompressed_size(self) -> int:
        return self.decompressed_size_shifted << DECOMPRESSED_SIZE_SHIFT

    @property
    def is_compressed(self) -> bool:
        return self.compressed == 1

    @property
    def version_string(self) -> str:
        """The BIOS version up to the first NUL, decoded leniently."""
        return self.bios_version.split(b"\x00", 1)[0].decode("ascii", errors="replace")
