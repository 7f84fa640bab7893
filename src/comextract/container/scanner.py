"""
COM container scanning.

Finds compressed payloads in a Toshiba BIOS update file and decodes them.

The file has no directory: payload headers are located by scanning for the
'BIOS' signature, which sits 3 bytes into each header. Every hit is only a
candidate. Its fields are checked before anything is decoded:

  1. The leading zero field must be zero.
  2. The header version selects the header size (256 or 512 bytes).
  3. The compression flag must be 0 (stored) or 1 (compressed).
  4. compressed_size <= decompressed_size <= 4 MiB.
  5. The file must hold the whole header and the declared payload.

Each accepted compressed payload contributes exactly its declared
decompressed size to the output. Scanning resumes right after the payload,
so no byte range is decoded twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..codec import decompress
from ..config import DEFAULT_CONFIG, MIN_INPUT_SIZE, ExtractConfig
from ..exceptions import (
    CodecError,
    InvalidHeaderError,
    NoSegmentFoundError,
    UncompressedSegmentError,
)
from .header import HEADER_PREFIX_SIZE, HEADER_SIZE_V2, SIGNATURE, SIGNATURE_OFFSET, ComHeader

logger = logging.getLogger(__name__)

SIGNATURE_BYTES: bytes = SIGNATURE.to_bytes(4, "little")
"""The signature as it appears in the file."""


@dataclass(frozen=True, slots=True)
class Segment:
    """One decoded payload and where it came from."""

    offset: int
    """Offset of the payload's header in the input."""

    header: ComHeader
    """The validated header."""

    data: bytes
    """Decoded bytes, exactly `header.decompressed_size` long."""

    @property
    def data_offset(self) -> int:
        """Offset of the compressed payload in the input."""
        return self.offset + self.header.header_size

    @property
    def end(self) -> int:
        """Offset of the first byte after the compressed payload."""
        return self.data_offset + self.header.compressed_size


def find_candidate(data: bytes, start: int = 0) -> int:
    """
    Find the next offset at or after `start` whose header carries the signature.

    Returns:
        The header offset, or -1 if there is none.
    """
    pos = data.find(SIGNATURE_BYTES, start + SIGNATURE_OFFSET)
    if pos < 0:
        return -1
    return pos - SIGNATURE_OFFSET


def validate_header(data: bytes, offset: int, config: ExtractConfig = DEFAULT_CONFIG) -> ComHeader:
    """
    Parse and check the header candidate at `offset`.

    Args:
        data: The whole input file.
        offset: Offset of the candidate header.
        config: Limits to check the declared sizes against.

    Returns:
        The header, if every check passes.

    Raises:
        InvalidHeaderError: If the candidate must be skipped.
    """
    rest = len(data) - offset
    if rest < HEADER_PREFIX_SIZE:
        raise InvalidHeaderError(offset, "header is truncated")

    header = ComHeader.parse(data, offset)

    if header.zero != 0:
        raise InvalidHeaderError(offset, f"leading field is {header.zero:#x}, not zero")

    logger.info("Toshiba COM header candidate found at offset %#x", offset)

    if not header.is_known_version:
        logger.warning(
            "Unknown header version %#x, assuming header size %#x",
            header.header_version,
            HEADER_SIZE_V2,
        )

    header_size = header.header_size
    if rest < header_size + 4:
        raise InvalidHeaderError(offset, f"fewer than {header_size + 4} bytes remain")

    if header.compressed > 1:
        raise InvalidHeaderError(
            offset, f"compression state is unknown ({header.compressed:#x})"
        )

    if header.compressed_size > header.decompressed_size:
        raise InvalidHeaderError(
            offset,
            f"compressed size {header.compressed_size:#x} is larger than "
            f"decompressed size {header.decompressed_size:#x}",
        )

    if header.decompressed_size > config.max_decompressed_size:
        raise InvalidHeaderError(
            offset,
            f"decompressed size {header.decompressed_size:#x} is larger than "
            f"{config.max_decompressed_size:#x}",
        )

    if rest < header_size + header.compressed_size:
        raise InvalidHeaderError(
            offset,
            f"payload of {header.compressed_size:#x} bytes extends past end of input",
        )

    logger.info("Toshiba COM header appears valid, BIOS version: %s", header.version_string)
    return header


def extract_segment(data: bytes, offset: int, header: ComHeader) -> Segment:
    """
    Decode the payload described by a validated header.

    Raises:
        UncompressedSegmentError: If the payload is stored, not compressed.
        CodecError: If the payload fails to decode.
    """
    data_offset = offset + header.header_size
    if not header.is_compressed:
        raise UncompressedSegmentError(offset, data_offset)

    logger.info("File is compressed, decompressing %#x bytes", header.compressed_size)

    payload = data[data_offset : data_offset + header.compressed_size]
    decoded = decompress(payload, max_output=header.decompressed_size)

    # The declared size is what the segment occupies in the output.
    if len(decoded) < header.decompressed_size:
        logger.warning(
            "Payload decoded to %#x bytes, padding to declared size %#x",
            len(decoded),
            header.decompressed_size,
        )
        decoded += bytes(header.decompressed_size - len(decoded))

    logger.info("Decompressed %#x bytes", header.decompressed_size)
    return Segment(offset=offset, header=header, data=decoded)


def scan(data: bytes, config: ExtractConfig = DEFAULT_CONFIG) -> list[Segment]:
    """
    Find and decode every compressed payload in a COM file.

    Args:
        data: The whole input file.
        config: Size limits and error policy.

    Returns:
        The decoded segments in file order.

    Raises:
        NoSegmentFoundError: If no segment was decoded.
        UncompressedSegmentError: If a stored payload is found
            (unless `config.continue_on_error` is set).
        CodecError: If a payload fails to decode
            (unless `config.continue_on_error` is set).
    """
    data = bytes(data)
    size = len(data)
    if size < MIN_INPUT_SIZE:
        raise NoSegmentFoundError(size)

    segments: list[Segment] = []
    offset = 0
    while offset < size - HEADER_PREFIX_SIZE:
        offset = find_candidate(data, offset)
        if offset < 0 or offset >= size - HEADER_PREFIX_SIZE:
            break

        try:
            header = validate_header(data, offset, config)
        except InvalidHeaderError as e:
            logger.info("Candidate at offset %#x skipped: %s", e.offset, e.reason)
            offset += 1
            continue

        try:
            segment = extract_segment(data, offset, header)
        except (CodecError, UncompressedSegmentError) as e:
            if not config.continue_on_error:
                raise
            logger.error("Segment at offset %#x failed, continuing: %s", offset, e)
            offset += 1
            continue

        segments.append(segment)
        offset = segment.end

    if not segments:
        raise NoSegmentFoundError(size)

    return segments


def extract(data: bytes, config: ExtractConfig = DEFAULT_CONFIG) -> bytes:
    """
    Extract the firmware image from a COM file.

    Returns:
        All decoded segments concatenated.

    Raises:
        ComExtractError: As raised by `scan`.
    """
    return b"".join(segment.data for segment in scan(data, config))
