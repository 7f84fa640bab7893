"""
Shared pytest fixtures for all comextract tests.

Import these fixtures automatically via pytest discovery.
"""

from __future__ import annotations

import pytest

from tests.comextract.helpers import encode_block, encode_stream


@pytest.fixture
def ab_tree() -> tuple[int, int]:
    """The smallest branching tree: 0 -> 'A', 1 -> 'B'."""
    return (0x41, 0x42)


@pytest.fixture
def fill_stream() -> bytes:
    """A one-block stream decoding to 1 KiB of 0xAA."""
    return encode_stream(encode_block(0xAA, b"\xaa" * 1024))
