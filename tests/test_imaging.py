import numpy as np
import pytest
from PIL import Image

from shadebuilder.errors import InvalidParameter
from shadebuilder.imaging import as_luminance_grid, load_image


def _save(tmp_path, size, mode="RGB", color=(10, 20, 30), name="src.png"):
    path = tmp_path / name
    Image.new(mode, size, color).save(path)
    return str(path)


def test_load_returns_rgb_uint8(tmp_path):
    grid = load_image(_save(tmp_path, (30, 20)))
    assert grid.shape == (20, 30, 3)
    assert grid.dtype == np.uint8
    assert tuple(grid[0, 0]) == (10, 20, 30)


def test_greyscale_becomes_three_channels(tmp_path):
    grid = load_image(_save(tmp_path, (8, 6), mode="L", color=200))
    assert grid.shape == (6, 8, 3)
    assert np.all(grid == 200)


def test_crop(tmp_path):
    grid = load_image(_save(tmp_path, (30, 20)), crop=(5, 2, 15, 7))
    assert grid.shape == (5, 10, 3)


@pytest.mark.parametrize("crop", [(0, 0, 40, 10), (10, 0, 5, 10), (-1, 0, 5, 5)])
def test_crop_outside_image(tmp_path, crop):
    with pytest.raises(InvalidParameter) as info:
        load_image(_save(tmp_path, (30, 20)), crop=crop)
    assert info.value.parameter == "crop"


def test_rotate_quarter_turn_swaps_sides(tmp_path):
    grid = load_image(_save(tmp_path, (30, 20)), rotate=90)
    assert grid.shape == (30, 20, 3)


def test_downscale_keeps_aspect(tmp_path):
    grid = load_image(_save(tmp_path, (200, 100)), max_dimension=50)
    assert grid.shape == (25, 50, 3)


def test_small_images_are_not_upscaled(tmp_path):
    grid = load_image(_save(tmp_path, (40, 10)), max_dimension=50)
    assert grid.shape == (10, 40, 3)


def test_as_luminance_grid_variants():
    rgba = np.zeros((4, 5, 4), dtype=np.uint8)
    assert as_luminance_grid(rgba).shape == (4, 5, 3)

    floats = np.full((2, 3), 254.7)
    out = as_luminance_grid(floats)
    assert out.dtype == np.uint8
    assert np.all(out == 255)


@pytest.mark.parametrize("pixels", [np.zeros((4, 5, 2)), np.zeros(7), np.full((2, 2), np.nan)])
def test_as_luminance_grid_rejects(pixels):
    with pytest.raises(InvalidParameter):
        as_luminance_grid(pixels)
