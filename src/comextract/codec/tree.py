"""
Decode tree reconstruction.

Every block carries the binary tree used to decode its symbols, serialized
depth first at the start of the block's bitstream:

  - bit 1: an internal node, followed by its 0-child, then its 1-child.
  - bit 0: a leaf, followed by the 8-bit literal it decodes to.

Example: the tree

        *
       / \\
     'A'  *
         / \\
       'B' 'C'

serializes as::

    1  0 01000001  1  0 01000010  0 01000011
    ^  ^ 'A'       ^  ^ 'B'       ^ 'C'

Internal nodes are numbered in the order they are read, starting at 256.
Their children are stored in two tables at index 2 * node_id: the 0-child in
`child0` and the 1-child in `child1`. A table entry below 256 is a literal,
anything else is the id of another internal node.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..exceptions import TreeTooLargeError
from .bitstream import BitCursor
from .constants import FIRST_NODE_ID, LEAF_LIMIT, MAX_INTERNAL_NODES, NODE_ID_LIMIT, TABLE_SIZE


def _empty_table() -> list[int]:
    return [0] * TABLE_SIZE


@dataclass(slots=True)
class DecodeTree:
    """The child tables of one block's decode tree."""

    child0: list[int] = field(default_factory=_empty_table)
    """Target of the 0-branch, indexed by 2 * node_id."""

    child1: list[int] = field(default_factory=_empty_table)
    """Target of the 1-branch, indexed by 2 * node_id."""

    root: int = 0
    """Literal or node id the decode walk starts from."""

    last_node_id: int = FIRST_NODE_ID - 1
    """Id of the most recently allocated internal node."""

    @property
    def internal_nodes(self) -> int:
        """Number of internal nodes read so far."""
        return self.last_node_id - (FIRST_NODE_ID - 1)

    def decode_symbol(self, cursor: BitCursor) -> int:
        """
        Walk from the root to a leaf, consuming one bit per internal node.

        Returns:
            The literal byte at the leaf reached.
        """
        value = self.root
        while value >= LEAF_LIMIT:
            index = value * 2
            if cursor.test_and_advance():
                value = self.child1[index]
            else:
                value = self.child0[index]
        return value


def build_tree(cursor: BitCursor) -> DecodeTree:
    """
    Read a serialized decode tree from the cursor.

    Args:
        cursor: Bit cursor positioned at the first bit of the tree.

    Returns:
        The reconstructed tree with its root reference set.

    Raises:
        TreeTooLargeError: If the tree has more than 255 internal nodes.
    """
    tree = DecodeTree()
    tree.root = _build_node(cursor, tree)
    return tree


def _build_node(cursor: BitCursor, tree: DecodeTree) -> int:
    """Read one subtree and return its literal or node id."""
    if not cursor.test_and_advance():
        return cursor.seed_leaf()

    # Node ids are handed out before the children are read, so a parent
    # always has a smaller id than its descendants.
    tree.last_node_id += 1
    node_id = tree.last_node_id
    if node_id >= NODE_ID_LIMIT:
        raise TreeTooLargeError(MAX_INTERNAL_NODES, offset=cursor.stream.position)

    index = 2 * node_id
    tree.child0[index] = _build_node(cursor, tree)
    tree.child1[index] = _build_node(cursor, tree)
    return node_id
