#!/usr/bin/env python3
# ascii_image/convert.py
"""
Conversion pipeline for ascii-image.

One image at a time: resolve the grid size, allocate fresh buffers,
stream the scanlines through a RowAccumulator, normalize, render.
Nothing is shared between images.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, TextIO

import requests

from ascii_image.aspect import resolve_output_size
from ascii_image.config import Settings
from ascii_image.decoder import DecodedImage, decode
from ascii_image.rendering.accumulator import RowAccumulator
from ascii_image.rendering.canvas import OutputCanvas
from ascii_image.rendering.renderer import Renderer
from ascii_image.sources import is_url, make_session, open_source

__all__ = ["convert_image", "convert_source", "convert_all"]

log = logging.getLogger(__name__)


def _log_info(image: DecodedImage, width: int, height: int, settings: Settings) -> None:
    log.info("Source width: %d", image.width)
    log.info("Source height: %d", image.height)
    log.info("Source color components: %d", image.components)
    log.info("Output width: %d", width)
    log.info("Output height: %d", height)
    log.info("Output palette (%d chars): '%s'", len(settings.palette), settings.palette.chars)


def convert_image(image: DecodedImage, settings: Settings) -> List[str]:
    """Render one decoded image to text lines."""
    width, height = resolve_output_size(image.width, image.height, settings.width, settings.height)
    _log_info(image, width, height, settings)

    canvas = OutputCanvas(width, height)
    canvas.clear()
    acc = RowAccumulator(canvas, image.width, image.height, image.components)
    acc.feed_all(image.scanlines)
    acc.finish()

    return Renderer(settings.palette, settings.options).render(canvas)


def convert_source(
    name: str,
    settings: Settings,
    sink: TextIO,
    session: Optional[requests.Session] = None,
) -> int:
    """Open, decode and render one input into sink. Returns lines written."""
    log.info("File: %s", name)
    with open_source(name, session=session, timeout=settings.timeout) as fp:
        image = decode(fp)
        lines = convert_image(image, settings)
    for line in lines:
        sink.write(line)
        sink.write("\n")
    return len(lines)


def convert_all(names: Iterable[str], settings: Settings, sink: TextIO) -> int:
    """
    Convert inputs strictly in order. Returns the number of images written.
    The first SourceError or DecodeError stops the run; allocation failures
    propagate as CanvasAllocationError.
    """
    names = list(names)
    session = None
    if any(is_url(n) for n in names):
        session = make_session(settings.user_agent, settings.retries)

    count = 0
    try:
        for name in names:
            convert_source(name, settings, sink, session=session)
            count += 1
    finally:
        if session is not None:
            session.close()
    return count
