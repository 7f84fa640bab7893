"""Decoder for the adaptive-tree codec used in Toshiba BIOS update COM files.

Usage::

    from comextract.codec import decompress

    image = decompress(payload)

Each block of a payload carries its own binary decode tree, serialized at
the head of the block's bitstream, followed by one root-to-leaf code per
output byte.
"""

from __future__ import annotations

from .bitstream import BitCursor, CompressedStream
from .decompress import decode_block, decompress
from .tree import DecodeTree, build_tree

__all__ = [
    # Core API
    "decompress",
    "decode_block",
    # Building blocks
    "BitCursor",
    "CompressedStream",
    "DecodeTree",
    "build_tree",
]
