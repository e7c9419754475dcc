import logging

import numpy as np
import pytest

from ascii_image.rendering.accumulator import RowAccumulator, normalize, sample_intensities
from ascii_image.rendering.canvas import OutputCanvas, build_column_lookup


def _run(rows, width, height, components=1):
    src_width = len(rows[0]) // components
    canvas = OutputCanvas(width, height)
    acc = RowAccumulator(canvas, src_width, len(rows), components)
    targets = [acc.feed(r) for r in rows]
    return acc.finish(), targets


def test_sample_intensities_averages_components():
    scanline = np.array([10, 20, 30, 40], dtype=np.float64)
    lookup = build_column_lookup(2, 2, 2)
    values = sample_intensities(scanline, lookup, 2)
    assert values.tolist() == pytest.approx([30 / 510, 70 / 510])


def test_downsampling_backfills_previous_row():
    rows = [[0], [51], [102], [153], [204]]
    canvas, targets = _run(rows, 1, 3)
    assert targets == [0, 1, 1, 2, 2]
    # the first scanline of each new row also lands on the row before it
    assert canvas.counts.tolist() == [2, 3, 2]
    assert canvas.pixels[:, 0].tolist() == pytest.approx([0.1, 0.4, 0.7])


def test_upsampling_fills_skipped_rows_with_current_scanline():
    canvas, targets = _run([[0], [255]], 1, 4)
    assert targets == [0, 3]
    assert canvas.counts.tolist() == [2, 1, 1, 1]
    assert canvas.pixels[:, 0].tolist() == pytest.approx([0.5, 1.0, 1.0, 1.0])


def test_single_scanline_fills_every_row():
    canvas, _ = _run([[255, 0]], 2, 3)
    assert canvas.counts.tolist() == [1, 1, 1]
    assert canvas.pixels.tolist() == [[1.0, 0.0]] * 3


def test_single_output_row_averages_everything():
    rows = [[0], [255], [255], [0]]
    canvas, targets = _run(rows, 1, 1)
    assert targets == [0, 0, 0, 0]
    assert canvas.counts.tolist() == [4]
    assert canvas.pixels[0, 0] == pytest.approx(0.5)


@pytest.mark.parametrize("src", [(7, 5), (64, 48), (100, 3), (3, 100), (31, 17)])
@pytest.mark.parametrize("out", [(1, 1), (4, 2), (13, 9), (40, 40)])
def test_every_row_receives_a_contribution(src, out):
    src_w, src_h = src
    rows = [np.full(src_w, 128, dtype=np.uint8) for _ in range(src_h)]
    canvas, _ = _run(rows, *out)
    assert (canvas.counts >= 1).all()
    assert canvas.pixels == pytest.approx(np.full((out[1], out[0]), 128 / 255))


def test_accepts_bytes_and_lists():
    canvas = OutputCanvas(2, 1)
    acc = RowAccumulator(canvas, 2, 2, 1)
    acc.feed(bytes([255, 0]))
    acc.feed([255, 0])
    acc.finish()
    assert canvas.pixels.tolist() == [[1.0, 0.0]]


def test_rejects_wrong_scanline_length():
    acc = RowAccumulator(OutputCanvas(2, 2), 4, 4, 3)
    with pytest.raises(ValueError):
        acc.feed([0] * 4)


def test_rejects_extra_scanlines():
    acc = RowAccumulator(OutputCanvas(1, 1), 1, 2, 1)
    acc.feed_all([[0], [0]])
    with pytest.raises(ValueError):
        acc.feed([0])


def test_counts_never_decrease():
    acc = RowAccumulator(OutputCanvas(3, 4), 6, 9, 1)
    previous = acc.canvas.counts.copy()
    for _ in range(9):
        acc.feed(np.zeros(6, dtype=np.uint8))
        assert (acc.canvas.counts >= previous).all()
        previous = acc.canvas.counts.copy()


def test_short_image_logs_warning(caplog):
    acc = RowAccumulator(OutputCanvas(1, 3), 1, 5, 1)
    acc.feed([255])
    with caplog.at_level(logging.WARNING, logger="ascii_image.rendering.accumulator"):
        canvas = acc.finish()
    assert "1 of 5" in caplog.text
    # rows that never received a scanline stay blank
    assert canvas.counts.tolist() == [1, 0, 0]
    assert canvas.pixels[1:].tolist() == [[0.0], [0.0]]


def test_normalize_leaves_empty_rows_alone():
    canvas = OutputCanvas(2, 2)
    canvas.pixels[0] = [2.0, 1.0]
    canvas.counts[0] = 2
    normalize(canvas)
    assert canvas.pixels.tolist() == [[1.0, 0.5], [0.0, 0.0]]


def test_accumulators_do_not_share_state():
    first = RowAccumulator(OutputCanvas(1, 2), 1, 4, 1)
    first.feed_all([[0], [0], [0], [0]])
    second = RowAccumulator(OutputCanvas(1, 2), 1, 4, 1)
    assert second.last_row == 0
    assert second.scanlines_seen == 0
