#!/usr/bin/env python3
# ascii_image/rendering/renderer.py
"""
Text renderer for a normalized OutputCanvas.

- Common API: Renderer(palette, options).render(canvas) -> list of lines
- Each line holds exactly canvas.width characters; one line per canvas row.
- flip_x mirrors characters within a line, flip_y reverses the row order,
  invert swaps the dark and light ends of the palette.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, TextIO

from ascii_image.rendering.canvas import OutputCanvas
from ascii_image.rendering.palette import Palette

__all__ = [
    "Renderer",
    "RenderOptions",
]


@dataclass(frozen=True)
class RenderOptions:
    flip_x: bool = False
    flip_y: bool = False
    invert: bool = False


@dataclass
class Renderer:
    """
    Maps averaged intensities to palette glyphs.
    Options only affect glyph choice and placement, never accumulation.
    """
    palette: Palette
    options: RenderOptions = field(default_factory=RenderOptions)

    def __post_init__(self):
        self._glyphs = self.palette.glyphs()

    def render(self, canvas: OutputCanvas) -> List[str]:
        idx = self.palette.indices(canvas.pixels, invert=self.options.invert)
        if self.options.flip_y:
            idx = idx[::-1, :]
        if self.options.flip_x:
            idx = idx[:, ::-1]

        lines: List[str] = []
        for y in range(canvas.height):
            lines.append("".join(self._glyphs[idx[y, :]].tolist()))
        return lines

    def write(self, canvas: OutputCanvas, sink: TextIO) -> int:
        """Write rendered lines, newline-terminated. Returns the line count."""
        lines = self.render(canvas)
        for line in lines:
            sink.write(line)
            sink.write("\n")
        return len(lines)
