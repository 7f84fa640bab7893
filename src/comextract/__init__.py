"""Extract firmware images from Toshiba BIOS update COM files.

Usage::

    from comextract import extract

    image = extract(Path("update.com").read_bytes())
"""

from .codec import decompress
from .config import ExtractConfig
from .container import ComHeader, Segment, extract, scan
from .exceptions import (
    CodecError,
    ComExtractError,
    ContainerError,
    InvalidHeaderError,
    MalformedStreamError,
    NoSegmentFoundError,
    TreeTooLargeError,
    UncompressedSegmentError,
)

__all__ = [
    # Core API
    "extract",
    "scan",
    "decompress",
    "ComHeader",
    "Segment",
    "ExtractConfig",
    # Exceptions
    "ComExtractError",
    "CodecError",
    "MalformedStreamError",
    "TreeTooLargeError",
    "ContainerError",
    "InvalidHeaderError",
    "UncompressedSegmentError",
    "NoSegmentFoundError",
]
