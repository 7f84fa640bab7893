"""
Constants for the COM payload codec.
"""

from __future__ import annotations

# ===========================================================================
# Stream Markers
# ===========================================================================
#
# A compressed stream is a run of blocks, each introduced by a marker byte,
# terminated by an end marker:
#
#   [0x01][block][0x01][block]...[0x00]

BLOCK_MARKER: int = 0x01
"""Marker byte introducing one compressed block."""

END_MARKER: int = 0x00
"""Marker byte terminating the stream."""

# ===========================================================================
# Block Layout
# ===========================================================================
#
# Each block starts with a fixed preamble, followed by the bit-packed tree
# and symbol codes:
#
#   [count: 3 bytes big-endian][register seed: 2 bytes][tree bits][code bits]
#
# The register seed bytes are the first two bytes of the bitstream itself.

COUNT_BYTES: int = 3
"""Size of the per-block output count."""

MAX_BLOCK_COUNT: int = (1 << (8 * COUNT_BYTES)) - 1
"""Largest output count a single block can declare."""

SEED_BYTES: int = 2
"""Number of bytes loaded into the shift register when a block starts."""

# ===========================================================================
# Shift Register
# ===========================================================================

REGISTER_BITS: int = 16
"""Width of the shift register."""

REGISTER_MASK: int = (1 << REGISTER_BITS) - 1
"""Mask keeping the register within 16 bits."""

HIGH_BIT: int = 1 << (REGISTER_BITS - 1)
"""The bit returned by a single-bit advance."""

BITS_PER_REFILL: int = 8
"""Advances between two refills of the register's low byte."""

REGISTER_LOOKAHEAD: int = SEED_BYTES
"""Bytes the register may have loaded beyond the last consumed bit.

Refills happen eagerly, so at the very end of a stream the register may
fetch up to this many bytes past the last one holding real bits.
"""

# ===========================================================================
# Decode Tree
# ===========================================================================
#
# Internal nodes are numbered from FIRST_NODE_ID upward so that node
# references never collide with literal byte values (0-255). Children are
# stored at table index 2 * node_id.

LEAF_LIMIT: int = 0x100
"""Values below this are literal bytes, values at or above are node ids."""

FIRST_NODE_ID: int = LEAF_LIMIT
"""Id assigned to the first internal node of a tree."""

NODE_ID_LIMIT: int = 511
"""Node ids must stay below this value."""

MAX_INTERNAL_NODES: int = NODE_ID_LIMIT - FIRST_NODE_ID
"""Largest number of internal nodes a tree may hold (255).

Enough for a full binary tree over all 256 byte values.
"""

TABLE_SIZE: int = 1024
"""Raw entries per child table, addressed by 2 * node_id."""
