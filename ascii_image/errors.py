#!/usr/bin/env python3
# ascii_image/errors.py
"""Exception types raised by the conversion pipeline."""


class AsciiImageError(Exception):
    """Base class for conversion errors."""


class CanvasAllocationError(AsciiImageError):
    """Per-image buffers could not be allocated. Fatal for the whole run."""


class SourceError(AsciiImageError):
    """An input could not be opened or fetched."""


class DecodeError(AsciiImageError):
    """An input could not be decoded into scanlines."""
