#!/usr/bin/env python3
# ascii_image/rendering/palette.py
"""
Character palettes and intensity quantization.

Index 0 is the darkest level and the last index the lightest. Inversion swaps
the two ends.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np

from ascii_image.aspect import round_half_up

__all__ = [
    "DEFAULT_PALETTE",
    "MAX_PALETTE_SIZE",
    "NAMED_PREFIX",
    "Palette",
    "default_palettes",
    "resolve_palette",
]

DEFAULT_PALETTE = "   ...',;:clodxkO0KXNWM"
MAX_PALETTE_SIZE = 256
NAMED_PREFIX = "@"


def default_palettes() -> Dict[str, str]:
    return {
        "default": DEFAULT_PALETTE,
        "ascii_basic": " .:-=+*#%@",
        "ascii_dense": " .'`^\",:;Il!i~+_-?][}{1)(|\\/*tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$",
        "blocks": " ▏▎▍▌▋▊▉█",
        "shades": " ░▒▓█",
    }


@dataclass(frozen=True)
class Palette:
    chars: str

    def __post_init__(self):
        if len(self.chars) < 2:
            raise ValueError("A palette needs at least two characters")
        if len(self.chars) > MAX_PALETTE_SIZE:
            raise ValueError(f"Too many palette characters (max {MAX_PALETTE_SIZE})")

    def __len__(self) -> int:
        return len(self.chars)

    @property
    def levels(self) -> int:
        return len(self.chars) - 1

    def quantize(self, intensity: float) -> int:
        """Quantization level in [0, levels] for an intensity in [0, 1]."""
        pos = round_half_up(self.levels * intensity)
        return max(0, min(self.levels, pos))

    def index_for(self, intensity: float, invert: bool = False) -> int:
        pos = self.quantize(intensity)
        return self.levels - pos if invert else pos

    def char_for(self, intensity: float, invert: bool = False) -> str:
        return self.chars[self.index_for(intensity, invert)]

    def indices(self, intensities: np.ndarray, invert: bool = False) -> np.ndarray:
        """Vectorized index_for over an array of intensities."""
        pos = np.floor(self.levels * intensities + 0.5).astype(np.int64)
        np.clip(pos, 0, self.levels, out=pos)
        return self.levels - pos if invert else pos

    def glyphs(self) -> np.ndarray:
        return np.array(list(self.chars))


def resolve_palette(spec: str) -> Palette:
    """
    "@name" selects a named palette, e.g. "@shades".
    Anything else, including "@" followed by an unknown name, is literal.
    """
    palettes = default_palettes()
    if spec.startswith(NAMED_PREFIX) and spec[len(NAMED_PREFIX):] in palettes:
        return Palette(palettes[spec[len(NAMED_PREFIX):]])
    return Palette(spec)
