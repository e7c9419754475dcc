#!/usr/bin/env python3
# ascii_image/aspect.py
"""
Output size resolution for ascii-image.
Computes the missing character-grid dimension from the source aspect ratio.

A character cell is roughly twice as tall as it is wide, so one output row
covers about two source rows for every source column an output column covers.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional, Tuple

__all__ = [
    "DEFAULT_WIDTH",
    "SizeMode",
    "round_half_up",
    "size_mode",
    "resolve_output_size",
]

log = logging.getLogger(__name__)

DEFAULT_WIDTH = 78

# Character glyph height / width
GLYPH_ASPECT = 2.0


class SizeMode(enum.Enum):
    WIDTH = "width"
    HEIGHT = "height"
    BOTH = "both"
    DEFAULT = "default"


def round_half_up(value: float) -> int:
    """Add 0.5 and truncate toward zero."""
    return int(value + 0.5)


def size_mode(width: Optional[int], height: Optional[int]) -> SizeMode:
    """Classify a partially specified output size."""
    if width is not None and height is not None:
        return SizeMode.BOTH
    if height is not None:
        return SizeMode.HEIGHT
    if width is not None:
        return SizeMode.WIDTH
    return SizeMode.DEFAULT


def _width_for(height: int, src_width: int, src_height: int) -> int:
    return round_half_up(GLYPH_ASPECT * height * src_width / src_height)


def _height_for(width: int, src_width: int, src_height: int) -> int:
    return round_half_up(width * src_height / GLYPH_ASPECT / src_width)


def resolve_output_size(
    src_width: int,
    src_height: int,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Return final (width, height) of the character grid.

    Only height given: width follows from the aspect ratio.
    Only width given (or nothing, width defaults to 78): height follows.
    Both given: returned unchanged.

    When the computed dimension rounds to 0 the given dimension is bumped by
    one until it does not. The given dimension strictly increases each pass and
    the computed one reaches 1 once it passes src_height / (4 * src_width)
    (height mode) or src_width / src_height (width mode).
    """
    if src_width < 1 or src_height < 1:
        raise ValueError(f"Invalid source dimensions {src_width}x{src_height}")
    for name, v in (("width", width), ("height", height)):
        if v is not None and v < 1:
            raise ValueError(f"Invalid {name} specified: {v}")

    mode = size_mode(width, height)
    if mode is SizeMode.BOTH:
        return int(width), int(height)

    if mode is SizeMode.HEIGHT:
        h = int(height)
        w = _width_for(h, src_width, src_height)
        while w == 0:
            h += 1
            w = _width_for(h, src_width, src_height)
        if h != height:
            log.debug("Height raised from %d to %d to keep width positive", height, h)
        return w, h

    w = DEFAULT_WIDTH if width is None else int(width)
    requested = w
    h = _height_for(w, src_width, src_height)
    while h == 0:
        w += 1
        h = _height_for(w, src_width, src_height)
    if w != requested:
        log.debug("Width raised from %d to %d to keep height positive", requested, w)
    return w, h
