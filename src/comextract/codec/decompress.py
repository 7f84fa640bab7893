"""
COM payload decompression.

This module implements the decoder for the adaptive-tree codec used inside
Toshiba BIOS update COM files.


STREAM STRUCTURE
----------------
A compressed payload is a run of blocks, each introduced by a marker byte::

    [0x01][block_1][0x01][block_2]...[0x01][block_n][0x00]

Any marker other than 0x01 or 0x00 is an error.


BLOCK STRUCTURE
---------------
Each block decodes to a fixed number of bytes with its own decode tree::

    [count: 3 bytes big-endian][bitstream ...]

The bitstream holds, in order:

  1. The decode tree, serialized depth first (see `tree`).
  2. `count` symbol codes, one root-to-leaf path per output byte.

It is padded with zero bits to a byte boundary. The next marker follows
the last byte holding real bits.


Example:
-------
Block bytes: 00 00 03 | 90 48 4C

    count = 0x000003 = 3
    bits  = 1 0 01000001 0 01000010 | 0 1 1 | 00
            ^ ^ 'A'      ^ 'B'        codes   padding
            tree

    Tree: root node, 0 -> 'A', 1 -> 'B'.
    Codes 0, 1, 1 decode to "ABB".


REWINDING
---------
The shift register always reads ahead of the bits it hands out. After the
last symbol of a block the stream position is one byte past the last byte
holding real bits, or two bytes if the last byte was fully consumed (the
refill counter is back at zero). The decoder rewinds by that amount so the
next marker is read from the right place.
"""

from __future__ import annotations

import logging

from ..exceptions import MalformedStreamError
from .bitstream import BitCursor, CompressedStream
from .constants import BLOCK_MARKER, COUNT_BYTES, END_MARKER, LEAF_LIMIT
from .tree import build_tree

logger = logging.getLogger(__name__)


def read_block_count(stream: CompressedStream) -> int:
    """Read the 24-bit big-endian output count of a block."""
    return int.from_bytes(stream.read_bytes(COUNT_BYTES), "big")


def decode_block(
    stream: CompressedStream,
    output: bytearray,
    max_output: int | None = None,
) -> int:
    """
    Decode one block and append its bytes to the output buffer.

    Args:
        stream: Stream positioned just after the block marker.
        output: Buffer receiving the decoded bytes (modified in place).
        max_output: Maximum total size the output buffer may reach.

    Returns:
        Number of bytes the block produced.

    Raises:
        MalformedStreamError: If the block is truncated or overflows `max_output`.
        TreeTooLargeError: If the block's decode tree is too large.
    """
    block_offset = stream.position

    # Step 1: Read how many bytes this block decodes to.
    count = read_block_count(stream)
    if max_output is not None and len(output) + count > max_output:
        raise MalformedStreamError(
            f"block of {count} bytes would overflow output limit: "
            f"{len(output)} + {count} > {max_output}",
            offset=block_offset,
        )

    # Step 2: Seed the register and rebuild the block's decode tree.
    cursor = BitCursor.seed(stream)
    tree = build_tree(cursor)

    # Step 3: Decode `count` symbols.
    #
    # A tree made of a single leaf decodes every symbol to that literal
    # without consuming any bits.
    if tree.root < LEAF_LIMIT:
        output.extend(bytes((tree.root,)) * count)
    else:
        for _ in range(count):
            output.append(tree.decode_symbol(cursor))

    # Step 4: Give back the bytes the register read ahead.
    stream.rewind(1)
    if cursor.counter == 0:
        stream.rewind(1)

    # Bits consumed from past the end of the data leave the position beyond it.
    if stream.overrun:
        raise MalformedStreamError("block extends past end of stream", offset=block_offset)

    logger.debug(
        "Decoded block at offset %d: %d internal nodes, %d bytes",
        block_offset,
        tree.internal_nodes,
        count,
    )
    return count


def decompress(data: bytes | bytearray | memoryview, max_output: int | None = None) -> bytes:
    """
    Decompress a COM payload.

    Args:
        data: The compressed payload, starting at its first marker byte.
        max_output: Maximum number of bytes the payload may decode to.

    Returns:
        The decoded bytes of all blocks, concatenated.

    Raises:
        MalformedStreamError: If a marker is invalid, the data is truncated,
            or the output would exceed `max_output`.
        TreeTooLargeError: If a block's decode tree is too large.
    """
    stream = CompressedStream(data)
    output = bytearray()

    while True:
        marker_offset = stream.position
        marker = stream.read_byte()

        if marker == END_MARKER:
            break

        if marker != BLOCK_MARKER:
            raise MalformedStreamError(f"unknown block marker {marker:#04x}", offset=marker_offset)

        decode_block(stream, output, max_output)

    return bytes(output)
