#!/usr/bin/env python3
# ascii_image/decoder.py
"""
Pillow-backed decoder producing interleaved 8-bit scanlines.

The accumulator reads raw samples, so images are kept in L, RGB or CMYK
(1, 3 or 4 components, as libjpeg would emit them). Anything else is
converted to the closest of L and RGB first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Iterator

import numpy as np
from PIL import Image, UnidentifiedImageError

from ascii_image.errors import DecodeError

__all__ = ["DecodedImage", "decode", "decode_path"]

COMPONENTS = {"L": 1, "RGB": 3, "CMYK": 4}

# Modes that become grayscale rather than RGB
_GRAY_MODES = ("1", "I", "I;16", "F", "LA", "P;L")


@dataclass
class DecodedImage:
    """Source dimensions plus a single forward pass over the scanlines."""
    width: int
    height: int
    components: int
    scanlines: Iterator[np.ndarray]
    mode: str = "L"
    format: str = ""


def _normalize_mode(img: Image.Image) -> Image.Image:
    if img.mode in COMPONENTS:
        return img
    if img.mode in _GRAY_MODES:
        return img.convert("L")
    return img.convert("RGB")


def _iter_scanlines(img: Image.Image, components: int) -> Iterator[np.ndarray]:
    arr = np.asarray(img, dtype=np.uint8).reshape(img.height, img.width * components)
    for row in arr:
        yield row
    img.close()


def decode(fp: BinaryIO) -> DecodedImage:
    """Decode an image stream. Raises DecodeError when Pillow cannot read it."""
    try:
        src = Image.open(fp)
        fmt = src.format or ""
        src.load()
        img = _normalize_mode(src)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Cannot decode image: {exc}") from exc

    components = COMPONENTS[img.mode]
    return DecodedImage(
        width=img.width,
        height=img.height,
        components=components,
        scanlines=_iter_scanlines(img, components),
        mode=img.mode,
        format=fmt,
    )


def decode_path(path: str) -> DecodedImage:
    with open(path, "rb") as f:
        return decode(f)
