"""Test helpers for comextract unit tests."""

from __future__ import annotations

from .builders import (
    BitWriter,
    Tree,
    balanced_tree,
    chain_tree,
    code_table,
    count_internal_nodes,
    encode_block,
    encode_stream,
    encode_tree,
    make_com_file,
    make_header,
    make_segment,
)

__all__ = [
    "BitWriter",
    "Tree",
    "balanced_tree",
    "chain_tree",
    "code_table",
    "count_internal_nodes",
    "encode_block",
    "encode_stream",
    "encode_tree",
    "make_com_file",
    "make_header",
    "make_segment",
]
