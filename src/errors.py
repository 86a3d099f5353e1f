"""
Centralized, typed exceptions for otsu-hash.

Every failure of the hashing pipeline is deterministic, so none of these
are retried. Callers catch `OtsuHashError` to handle all of them at once,
or the stdlib base (`OSError`, `ValueError`) they also derive from.
"""

from __future__ import annotations


class OtsuHashError(Exception):
    """Base class for all custom errors in otsu-hash."""


class ImageDecodeError(OtsuHashError, OSError):
    """Raised when a file, byte buffer or URL cannot be decoded into an image."""


class InvalidConfigurationError(OtsuHashError, ValueError):
    """Raised for a non-positive grid dimension or a radix outside [2, 36]."""


class DegenerateImageError(OtsuHashError, ValueError):
    """Raised when an image has no samples to hash (zero width or height)."""


class ConfigLoadError(OtsuHashError):
    """Raised when a settings file is missing, unreadable, or invalid."""
