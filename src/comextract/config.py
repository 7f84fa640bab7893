"""
Extraction configuration.

Limits and policies applied while scanning a COM file for payloads.
"""

from typing import Final

from pydantic import Field

from comextract.types import StrictBaseModel

MAX_DECOMPRESSED_SIZE: Final = 0x400000
"""Largest decompressed size a header may declare (4 MiB)."""

MIN_INPUT_SIZE: Final = 0x100
"""Inputs smaller than one version 0 header cannot hold a payload."""


class ExtractConfig(StrictBaseModel):
    """Runtime configuration for the container scanner."""

    max_decompressed_size: int = Field(default=MAX_DECOMPRESSED_SIZE, gt=0)
    """Headers declaring a larger decompressed size are rejected."""

    continue_on_error: bool = False
    """
    Keep scanning after a segment fails to decode.

    By default the first failing segment aborts the whole run. When set, the
    failure is logged and scanning moves on to the next offset. The run still
    fails if no segment decodes.
    """


DEFAULT_CONFIG: Final = ExtractConfig()
"""Configuration matching the behavior of the original tool."""
