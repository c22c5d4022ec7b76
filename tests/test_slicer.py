"""
Tests for core.slicer

Test Coverage:
- slice_image(): cell count, widths, heights, row-major order, pixel content
- Boundary fill: clamped reads are filled with the background colour
- Determinism, thread-pool rendering, aspect-ratio crop, alpha flattening
- Edge cases: invalid margins, images too small for the grid
"""

import numpy as np
import pytest
from PIL import Image

from conftest import gradient
from gridition.core.errors import InvalidInput
from gridition.core.grid import GridShape
from gridition.core.raster import decode_png
from gridition.core.slicer import SliceSettings, clamp_box, expected_cell_width, plan_cells, slice_image


def cell_pixels(cell):
    with decode_png(cell.data) as image:
        return np.asarray(image.convert("RGB")).copy()


def test_single_row_scenario(landscape):
    """300x200, 3x1, margin 16 -> widths 116/132/116, full height."""
    cells = slice_image(landscape, "3x1", SliceSettings(margin=16))

    assert len(cells) == 3
    assert [cell.width for cell in cells] == [116, 132, 116]
    assert all(cell.height == 200 for cell in cells)


@pytest.mark.parametrize("shape", list(GridShape))
def test_cell_count_and_widths_for_every_shape(square, shape):
    cells = slice_image(square, shape, SliceSettings(margin=8))

    assert len(cells) == shape.rows * 3
    base_w = square.width // 3
    for cell in cells:
        assert cell.width == expected_cell_width(base_w, cell.col, 8)
        assert cell.height == square.height // shape.rows


def test_cells_are_row_major(square):
    cells = slice_image(square, "3x3")

    for i, cell in enumerate(cells):
        assert (cell.index, cell.row, cell.col) == (i, i // 3, i % 3)
    assert cells.shape is GridShape.THREE_ROWS


def test_cell_pixels_include_neighbour_margin(landscape):
    """Interior cell starts ``margin`` px left of its base column."""
    source = np.asarray(landscape)
    cells = slice_image(landscape, "3x2", SliceSettings(margin=16))

    middle_bottom = cell_pixels(cells[4])

    assert middle_bottom.shape == (100, 132, 3)
    assert np.array_equal(middle_bottom, source[100:200, 84:216])
    assert np.array_equal(cell_pixels(cells[0]), source[0:100, 0:116])
    assert np.array_equal(cell_pixels(cells[5]), source[100:200, 184:300])


@pytest.mark.parametrize("shape", list(GridShape))
def test_edge_columns_never_read_outside_image(shape):
    plan = plan_cells(300, 300, shape, 16)

    for geometry in plan:
        left, upper, right, lower = geometry.source_box
        if geometry.col == 0:
            assert left >= 0
        if geometry.col == 2:
            assert right <= 300
        assert upper >= 0 and lower <= 300


def test_clamped_reads_are_filled_white():
    """A margin wider than a base cell reads past both image edges."""
    source = gradient(30, 10)
    cells = slice_image(source, "3x1", SliceSettings(margin=16))
    middle = cell_pixels(cells[1])

    assert middle.shape == (10, 42, 3)
    assert (middle[:, :6] == 255).all()
    assert (middle[:, 36:] == 255).all()
    assert np.array_equal(middle[:, 6:36], np.asarray(source))


def test_clamp_box():
    assert clamp_box((-6, 0, 36, 10), 30, 10) == (0, 0, 30, 10)
    assert clamp_box((4, 0, 30, 10), 30, 10) == (4, 0, 30, 10)


def test_slicing_is_deterministic(landscape):
    first = slice_image(landscape, "3x2", SliceSettings(margin=16))
    second = slice_image(landscape, "3x2", SliceSettings(margin=16))

    assert first.buffers() == second.buffers()


def test_thread_pool_matches_sequential(square):
    sequential = slice_image(square, "3x3", SliceSettings(margin=12))
    threaded = slice_image(square, "3x3", SliceSettings(margin=12, workers=4))

    assert threaded.buffers() == sequential.buffers()
    assert [c.index for c in threaded] == list(range(9))


def test_transparent_pixels_become_white():
    """Transparent areas must not reach the feed (they render black there)."""
    source = Image.new("RGBA", (90, 30), (0, 0, 0, 0))
    cells = slice_image(source, "3x1", SliceSettings(margin=4))

    for cell in cells:
        assert (cell_pixels(cell) == 255).all()
    assert source.mode == "RGBA"
    assert source.getpixel((0, 0)) == (0, 0, 0, 0)


def test_source_image_is_not_modified(landscape):
    before = np.asarray(landscape).copy()
    slice_image(landscape, "3x2", SliceSettings(margin=16, crop_ratio=(1, 1)))

    assert landscape.size == (300, 200)
    assert np.array_equal(np.asarray(landscape), before)


def test_crop_ratio_gives_square_base_cells():
    source = gradient(400, 200)
    cells = slice_image(source, "3x1", SliceSettings(margin=16, crop_ratio="1:1"))

    assert [cell.height for cell in cells] == [133, 133, 133]
    assert [cell.base_width for cell in cells] == [133, 133, 133]


def test_crop_ratio_trims_height_for_tall_images():
    source = gradient(300, 600)
    cells = slice_image(source, "3x2", SliceSettings(margin=0, crop_ratio="4:5"))

    assert all(cell.width == 100 for cell in cells)
    assert all(cell.height == 125 for cell in cells)


def test_zero_margin_yields_plain_tiles(landscape):
    cells = slice_image(landscape, "3x1", SliceSettings(margin=0))

    assert [cell.width for cell in cells] == [100, 100, 100]


@pytest.mark.parametrize("kwargs", [{"margin": -1}, {"margin": 1.5}, {"workers": 0}, {"crop_ratio": "0:1"}])
def test_invalid_settings(kwargs):
    with pytest.raises(InvalidInput):
        SliceSettings(**kwargs)


def test_image_too_small_for_grid():
    with pytest.raises(InvalidInput):
        slice_image(gradient(2, 10), "3x1")


def test_unsupported_shape(landscape):
    with pytest.raises(InvalidInput):
        slice_image(landscape, "3x4")


def test_uneven_width_keeps_neighbour_margins_aligned():
    """At 302 px the middle cell's right margin is the first pixels of the last cell's base."""
    plan = plan_cells(302, 60, GridShape.ONE_ROW, 16)

    assert [g.source_box[0] for g in plan] == [0, 84, 184]
    assert [g.source_box[2] for g in plan] == [116, 216, 300]

    cells = slice_image(gradient(302, 60), "3x1", SliceSettings(margin=16))
    middle, last = cell_pixels(cells[1]), cell_pixels(cells[2])
    assert np.array_equal(middle[:, 116:132], last[:, 16:32])


def test_uneven_height_rows_are_contiguous():
    plan = plan_cells(300, 203, GridShape.THREE_ROWS, 0)

    assert sorted({g.source_box[1] for g in plan}) == [0, 67, 134]
    assert {g.source_box[3] - g.source_box[1] for g in plan} == {67}
