import io

import numpy as np
import pytest
from PIL import Image

from ascii_image.decoder import DecodedImage


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the per-user config file."""
    path = tmp_path / "config" / "ascii_image.json"
    monkeypatch.setenv("ASCII_IMAGE_CONFIG", str(path))
    return path


def _png_bytes(arr: np.ndarray, mode: str) -> bytes:
    buf = io.BytesIO()
    img = Image.fromarray(np.asarray(arr, dtype=np.uint8))
    if img.mode != mode:
        img = img.convert(mode)
    img.save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return _png_bytes


@pytest.fixture
def write_png(tmp_path):
    def _write(name: str, arr, mode: str = "L") -> str:
        p = tmp_path / name
        p.write_bytes(_png_bytes(arr, mode))
        return str(p)
    return _write


@pytest.fixture
def make_decoded():
    """DecodedImage from a list of flat scanlines."""
    def _make(rows, components: int = 1) -> DecodedImage:
        rows = [np.asarray(r, dtype=np.uint8) for r in rows]
        width = len(rows[0]) // components
        return DecodedImage(width=width, height=len(rows), components=components, scanlines=iter(rows))
    return _make
