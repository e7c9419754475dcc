#!/usr/bin/env python3
# ascii_image/rendering/canvas.py
"""
Per-image accumulation buffers and the source -> grid mapping.

- OutputCanvas: (height, width) float buffer plus one contribution count per row.
- ScaleFactors: ratios mapping scanline index -> output row, column -> source column.
- build_column_lookup: flat scanline offset for every output column.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ascii_image.aspect import round_half_up
from ascii_image.errors import CanvasAllocationError

__all__ = [
    "OutputCanvas",
    "ScaleFactors",
    "build_column_lookup",
]


class OutputCanvas:
    """
    Accumulation buffer for one image.
    Cells hold summed intensities until normalize() divides by the row counts.
    """

    __slots__ = ("width", "height", "pixels", "counts")

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise ValueError(f"Invalid output dimensions {width}x{height}")
        self.width = width
        self.height = height
        try:
            self.pixels = np.zeros((height, width), dtype=np.float64)
            self.counts = np.zeros(height, dtype=np.int64)
        except (MemoryError, ValueError) as exc:
            raise CanvasAllocationError(
                f"Not enough memory for output dimension {width}x{height}"
            ) from exc

    def clear(self) -> None:
        self.pixels.fill(0.0)
        self.counts.fill(0)

    @property
    def size(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class ScaleFactors:
    resize_y: float
    resize_x: float

    @classmethod
    def from_dimensions(cls, src_width: int, src_height: int, width: int, height: int) -> "ScaleFactors":
        # Single output row or single scanline: everything lands on row 0
        if height == 1 or src_height == 1:
            resize_y = 0.0
        else:
            resize_y = (height - 1) / (src_height - 1)
        return cls(resize_y=resize_y, resize_x=src_width / width)

    def target_row(self, scanline_index: int) -> int:
        """Output row a 0-based source scanline maps to."""
        return round_half_up(self.resize_y * scanline_index)


def build_column_lookup(src_width: int, width: int, components: int) -> np.ndarray:
    """
    Return read-only int array of length width.
    Entry x is floor(x * src_width / width) * components, the offset of that
    column's first sample in a decoded scanline.
    """
    if src_width < 1 or width < 1 or components < 1:
        raise ValueError("Column lookup needs positive dimensions and component count")
    cols = (np.arange(width, dtype=np.int64) * src_width) // width
    lookup = cols * components
    lookup.setflags(write=False)
    return lookup
