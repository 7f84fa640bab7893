"""Reusable type definitions shared across comextract."""

from .base import StrictBaseModel

__all__ = [
    "StrictBaseModel",
]
