#!/usr/bin/env python3
# ascii_image/rendering/accumulator.py
"""
Streaming row accumulation and normalization.

Scanlines arrive top to bottom, one at a time. Each one is sampled at the
lookup columns and added into every output row between the previous target
row and its own target row, both inclusive. The previous target row therefore
also receives the first scanline of the next row.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence, Union

import numpy as np

from ascii_image.rendering.canvas import OutputCanvas, ScaleFactors, build_column_lookup

__all__ = [
    "RowAccumulator",
    "normalize",
    "sample_intensities",
]

log = logging.getLogger(__name__)

Scanline = Union[Sequence[int], bytes, np.ndarray]


def sample_intensities(scanline: np.ndarray, lookup: np.ndarray, components: int) -> np.ndarray:
    """
    Intensity in [0, 1] per output column: mean of the components samples
    starting at each lookup offset, for 8-bit samples.
    """
    idx = lookup[:, None] + np.arange(components)
    return scanline[idx].sum(axis=1) / (255.0 * components)


def normalize(canvas: OutputCanvas) -> OutputCanvas:
    """Divide every row by its contribution count. Rows with no count stay 0."""
    rows = canvas.counts != 0
    canvas.pixels[rows] /= canvas.counts[rows][:, None]
    return canvas


class RowAccumulator:
    """
    Reduces the scanlines of one image into an OutputCanvas.

    The cursor and scanline counter belong to this object, so a new
    accumulator is created per image.
    """

    def __init__(self, canvas: OutputCanvas, src_width: int, src_height: int, components: int):
        if src_width < 1 or src_height < 1 or components < 1:
            raise ValueError("Accumulator needs positive source dimensions and component count")
        self.canvas = canvas
        self.src_width = src_width
        self.src_height = src_height
        self.components = components
        self.scale = ScaleFactors.from_dimensions(src_width, src_height, canvas.width, canvas.height)
        self.lookup = build_column_lookup(src_width, canvas.width, components)
        self.row_length = src_width * components
        self.last_row = 0
        self.scanlines_seen = 0

    def target_row(self, scanline_index: int) -> int:
        # The final scanline always reaches the bottom row
        if scanline_index == self.src_height - 1:
            return self.canvas.height - 1
        return min(self.scale.target_row(scanline_index), self.canvas.height - 1)

    def feed(self, scanline: Scanline) -> int:
        """Accumulate one scanline. Returns the output row it targeted."""
        if self.scanlines_seen >= self.src_height:
            raise ValueError(f"More than {self.src_height} scanlines supplied")
        if isinstance(scanline, (bytes, bytearray)):
            samples = np.frombuffer(scanline, dtype=np.uint8)
        else:
            samples = np.asarray(scanline)
        samples = samples.reshape(-1)
        if samples.size != self.row_length:
            raise ValueError(
                f"Scanline {self.scanlines_seen} has {samples.size} samples, expected {self.row_length}"
            )

        y = self.target_row(self.scanlines_seen)
        values = sample_intensities(samples.astype(np.float64), self.lookup, self.components)

        pixels = self.canvas.pixels
        counts = self.canvas.counts
        row = self.last_row
        while row <= y:
            pixels[row] += values
            counts[row] += 1
            row += 1

        self.last_row = y
        self.scanlines_seen += 1
        return y

    def feed_all(self, scanlines: Iterable[Scanline]) -> "RowAccumulator":
        for line in scanlines:
            self.feed(line)
        return self

    def finish(self) -> OutputCanvas:
        """Normalize the canvas and hand it over for rendering."""
        if self.scanlines_seen < self.src_height:
            log.warning(
                "Image ended after %d of %d scanlines", self.scanlines_seen, self.src_height
            )
        return normalize(self.canvas)
