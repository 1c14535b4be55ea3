import numpy as np
import pytest

from dotpic.errors import InvalidDimension, OutOfBounds
from dotpic.grid import DOT_BITS, Color, DotGrid, dot_index, to_unicode


def all_dots(grid):
    return {(x, y) for y in range(grid.dot_height) for x in range(grid.dot_width) if grid.get_dot(x, y)}


def test_new_grid_is_empty():
    grid = DotGrid(3, 2)
    assert grid.dimensions == (3, 2)
    assert (grid.dot_width, grid.dot_height) == (6, 8)
    assert all_dots(grid) == set()
    assert grid.get_color(0, 0) is None


@pytest.mark.parametrize("width, height", [(0, 5), (5, 0), (0, 0), (-1, 3)])
def test_new_rejects_empty_dimensions(width, height):
    with pytest.raises(InvalidDimension):
        DotGrid(width, height)


def test_new_rejects_oversized_dimensions():
    with pytest.raises(InvalidDimension):
        DotGrid(10_001, 1)
    with pytest.raises(InvalidDimension):
        DotGrid(8, 8, max_width=4)


def test_set_dot_is_isolated():
    for y in range(8):
        for x in range(4):
            grid = DotGrid(2, 2)
            grid.set_dot(x, y, True)
            assert grid.get_dot(x, y)
            assert all_dots(grid) == {(x, y)}


def test_set_dot_false_clears_only_that_dot():
    grid = DotGrid(1, 1)
    grid.set_dot(0, 0)
    grid.set_dot(1, 3)
    grid.set_dot(0, 0, False)
    assert all_dots(grid) == {(1, 3)}


@pytest.mark.parametrize("x, y", [(2, 0), (0, 4), (-1, 0), (0, -1)])
def test_dot_access_out_of_bounds(x, y):
    grid = DotGrid(1, 1)
    with pytest.raises(OutOfBounds):
        grid.set_dot(x, y)
    with pytest.raises(IndexError):
        grid.get_dot(x, y)


def test_to_unicode_is_a_bijection_onto_braille_block():
    chars = [to_unicode(i) for i in range(256)]
    assert len(set(chars)) == 256
    assert set(chars) == {chr(c) for c in range(0x2800, 0x2900)}
    assert to_unicode(0) == "\u2800"
    assert to_unicode(0xFF) == "\u28ff"


@pytest.mark.parametrize(
    "dots, expected",
    [
        ([(0, 0), (0, 1)], "\u2803"),
        ([(0, 0)], "\u2801"),
        ([(1, 0)], "\u2808"),
        ([(0, 2)], "\u2804"),
        ([(1, 2)], "\u2820"),
        ([(0, 3)], "\u2840"),
        ([(1, 3)], "\u2880"),
        ([(0, 0), (1, 1), (0, 2), (1, 3)], "\u2895"),
    ],
)
def test_reference_characters(dots, expected):
    grid = DotGrid(1, 1)
    for x, y in dots:
        grid.set_dot(x, y)
    assert grid.get_char(0, 0) == expected


def test_dot_index_matches_bit_table():
    indices = {dot_index(x, y) for x in range(2) for y in range(4)}
    assert indices == set(range(8))
    assert dot_index(0, 3) == 6
    assert dot_index(1, 0) == 3
    for y in range(4):
        for x in range(2):
            assert DOT_BITS[y][x] == 1 << dot_index(x, y)


def test_dots_map_to_their_cell():
    grid = DotGrid(3, 3)
    grid.set_dot(5, 9)
    assert grid.get_cell(2, 2) == DOT_BITS[1][1]
    assert grid.is_empty(0, 0)
    assert not grid.is_empty(2, 2)


def test_clear_reuses_storage():
    grid = DotGrid(4, 4)
    patterns = grid.patterns
    grid.set_dot(3, 3)
    grid.set_cell_color(1, 0, Color(1, 2, 3))
    grid.clear()
    assert grid.patterns is patterns
    assert all_dots(grid) == set()
    assert grid.get_color(1, 0) is None


def test_clear_region():
    grid = DotGrid(4, 4)
    grid.patterns.fill(0xFF)
    grid.clear_region(1, 1, 2, 2)
    assert grid.get_cell(1, 1) == 0
    assert grid.get_cell(2, 2) == 0
    assert grid.get_cell(0, 0) == 0xFF
    assert grid.get_cell(3, 3) == 0xFF


def test_clear_region_out_of_bounds():
    grid = DotGrid(4, 4)
    grid.patterns.fill(0xFF)
    with pytest.raises(OutOfBounds):
        grid.clear_region(3, 3, 2, 1)
    assert np.all(grid.patterns == 0xFF)


def test_clear_region_zero_size_is_noop():
    grid = DotGrid(2, 2)
    grid.set_dot(0, 0)
    grid.clear_region(0, 0, 0, 0)
    assert grid.get_dot(0, 0)


def test_resize_grow_preserves_dots():
    grid = DotGrid(2, 2)
    grid.set_dot(0, 0)
    grid.set_dot(3, 7)
    grid.resize(5, 4)
    assert grid.dimensions == (5, 4)
    assert all_dots(grid) == {(0, 0), (3, 7)}


def test_resize_shrink_truncates():
    grid = DotGrid(4, 4)
    grid.set_dot(1, 1)
    grid.set_dot(7, 15)
    grid.resize(2, 2)
    assert all_dots(grid) == {(1, 1)}


def test_grow_then_shrink_round_trip():
    rng = np.random.default_rng(7)
    grid = DotGrid(3, 2)
    grid.patterns[...] = rng.integers(0, 256, size=(2, 3), dtype=np.uint8)
    before = all_dots(grid)
    grid.resize(6, 5)
    grid.resize(3, 2)
    assert all_dots(grid) == before


def test_resize_keeps_colours_in_overlap():
    grid = DotGrid(2, 2)
    grid.set_cell_color(1, 1, Color(9, 8, 7))
    grid.resize(3, 3)
    assert grid.get_color(1, 1) == Color(9, 8, 7)
    assert grid.get_color(2, 2) is None


def test_invalid_resize_leaves_grid_untouched():
    grid = DotGrid(2, 2)
    grid.set_dot(1, 1)
    with pytest.raises(InvalidDimension):
        grid.resize(0, 3)
    assert grid.dimensions == (2, 2)
    assert grid.get_dot(1, 1)


def test_colour_is_per_cell():
    grid = DotGrid(2, 1)
    grid.set_cell_color(0, 0, (10, 20, 30))
    assert grid.get_color(0, 0) == Color(10, 20, 30)
    assert grid.get_color(1, 0) is None
    grid.clear_colors()
    assert grid.get_color(0, 0) is None


def test_colour_out_of_bounds():
    grid = DotGrid(2, 1)
    with pytest.raises(OutOfBounds):
        grid.set_cell_color(2, 0, Color.white())
    with pytest.raises(OutOfBounds):
        grid.get_color(0, 1)


def test_copy_is_independent():
    grid = DotGrid(2, 2)
    grid.set_dot(0, 0)
    clone = grid.copy()
    assert clone == grid
    grid.set_dot(1, 1)
    assert not clone.get_dot(1, 1)
    assert clone != grid


def test_load_patterns_round_trip():
    grid = DotGrid(3, 1)
    grid.load_patterns(bytes([1, 2, 255]))
    assert grid.raw_patterns() == bytes([1, 2, 255])
    with pytest.raises(InvalidDimension):
        grid.load_patterns(bytes([1, 2]))


def test_string_rendering():
    grid = DotGrid(2, 2)
    grid.set_dot(0, 0)
    grid.set_cell(1, 1, 0xFF)
    assert grid.to_lines() == ["\u2801\u2800", "\u2800\u28ff"]
    assert str(grid) == "\u2801\u2800\n\u2800\u28ff"
