import numpy as np
import pytest

from dotpic.config import Average, CenterPixel, Dominant
from dotpic.errors import UnsupportedConfiguration
from dotpic.sampling import sample_colours


def test_uniform_image():
    rgb = np.zeros((8, 4, 3), dtype=np.uint8)
    rgb[...] = (255, 0, 0)
    colours, has = sample_colours(rgb)
    assert colours.shape == (2, 2, 3)
    assert has.all()
    assert np.all(colours == (255, 0, 0))


def test_block_mean():
    rgb = np.zeros((4, 2, 3), dtype=np.uint8)
    rgb[:2] = (200, 100, 0)
    colours, _ = sample_colours(rgb)
    np.testing.assert_array_equal(colours[0, 0], [100, 50, 0])


def test_each_block_samples_only_its_pixels():
    rgb = np.zeros((4, 4, 3), dtype=np.uint8)
    rgb[:, 2:] = (10, 20, 30)
    colours, _ = sample_colours(rgb)
    np.testing.assert_array_equal(colours[0, 0], [0, 0, 0])
    np.testing.assert_array_equal(colours[0, 1], [10, 20, 30])


def test_invalid_pixels_are_ignored():
    rgb = np.zeros((4, 4, 3), dtype=np.uint8)
    rgb[:, 0] = (90, 90, 90)
    valid = np.zeros((4, 4), dtype=bool)
    valid[:, 0] = True
    colours, has = sample_colours(rgb, valid)
    np.testing.assert_array_equal(colours[0, 0], [90, 90, 90])
    assert has.tolist() == [[True, False]]


def test_partial_blocks_are_padded():
    rgb = np.full((5, 3, 3), 40, dtype=np.uint8)
    colours, has = sample_colours(rgb)
    assert colours.shape == (2, 2, 3)
    assert has.all()
    np.testing.assert_array_equal(colours[1, 1], [40, 40, 40])


def two_colour_block():
    # rows 0-2 blue, row 3 red: 6 blue pixels, 2 red
    rgb = np.zeros((4, 2, 3), dtype=np.uint8)
    rgb[:3] = (0, 0, 200)
    rgb[3] = (200, 0, 0)
    return rgb


def test_dominant_picks_most_frequent_colour():
    colours, _ = sample_colours(two_colour_block(), strategy=Dominant())
    np.testing.assert_array_equal(colours[0, 0], [0, 0, 200])


def test_dominant_tie_goes_to_first_pixel():
    rgb = np.zeros((4, 2, 3), dtype=np.uint8)
    rgb[:2] = (9, 9, 9)
    rgb[2:] = (50, 60, 70)
    colours, _ = sample_colours(rgb, strategy=Dominant())
    np.testing.assert_array_equal(colours[0, 0], [9, 9, 9])


def test_center_pixel_takes_middle_of_block():
    # eight pixels in row-major order; index 4 is row 2, column 0
    rgb = np.zeros((4, 2, 3), dtype=np.uint8)
    rgb[2, 0] = (1, 2, 3)
    colours, _ = sample_colours(rgb, strategy=CenterPixel())
    np.testing.assert_array_equal(colours[0, 0], [1, 2, 3])


def test_center_pixel_of_partial_block_uses_valid_pixels():
    # a 3x1 image leaves three valid pixels in the block; the middle one is row 1
    rgb = np.zeros((3, 1, 3), dtype=np.uint8)
    rgb[1, 0] = (70, 80, 90)
    colours, has = sample_colours(rgb, strategy=CenterPixel())
    np.testing.assert_array_equal(colours[0, 0], [70, 80, 90])
    assert has.tolist() == [[True]]


def test_average_is_the_default_strategy():
    rgb = two_colour_block()
    np.testing.assert_array_equal(sample_colours(rgb)[0], sample_colours(rgb, strategy=Average())[0])
    np.testing.assert_array_equal(sample_colours(rgb)[0][0, 0], [50, 0, 150])


def test_strategies_skip_empty_blocks():
    rgb = np.full((4, 4, 3), 30, dtype=np.uint8)
    valid = np.zeros((4, 4), dtype=bool)
    valid[:, :2] = True
    for strategy in (Dominant(), CenterPixel()):
        colours, has = sample_colours(rgb, valid, strategy)
        assert has.tolist() == [[True, False]]
        np.testing.assert_array_equal(colours[0, 1], [0, 0, 0])


def test_unknown_strategy_is_rejected():
    with pytest.raises(UnsupportedConfiguration):
        sample_colours(np.zeros((4, 2, 3), dtype=np.uint8), strategy="median")
