"""Locating and extracting payloads in Toshiba BIOS update COM files."""

from .header import ComHeader
from .scanner import Segment, extract, extract_segment, find_candidate, scan, validate_header

__all__ = [
    "ComHeader",
    "Segment",
    "extract",
    "extract_segment",
    "find_candidate",
    "scan",
    "validate_header",
]
