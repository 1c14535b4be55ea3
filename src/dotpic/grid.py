from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np

from dotpic.errors import InvalidDimension, OutOfBounds

logger = logging.getLogger(__name__)

BRAILLE_BASE = 0x2800
CELL_WIDTH = 2
CELL_HEIGHT = 4

MAX_GRID_WIDTH = 10_000
MAX_GRID_HEIGHT = 10_000

# Bit masks per (row, column) inside a cell, in Unicode braille dot order:
#   1 4
#   2 5
#   3 6
#   7 8
DOT_BITS = (
    (0x01, 0x08),
    (0x02, 0x10),
    (0x04, 0x20),
    (0x40, 0x80),
)


class Color(NamedTuple):
    r: int
    g: int
    b: int

    @classmethod
    def black(cls) -> "Color":
        return cls(0, 0, 0)

    @classmethod
    def white(cls) -> "Color":
        return cls(255, 255, 255)


def dot_index(local_x: int, local_y: int) -> int:
    """Bit number (0-7) of the dot at column ``local_x``, row ``local_y`` of a cell."""
    return DOT_BITS[local_y][local_x].bit_length() - 1


def to_unicode(pattern: int) -> str:
    """Braille character for a packed dot byte."""
    return chr(BRAILLE_BASE + (int(pattern) & 0xFF))


def check_dimensions(
    width: int, height: int, max_width: int = MAX_GRID_WIDTH, max_height: int = MAX_GRID_HEIGHT
) -> None:
    if width <= 0 or height <= 0:
        raise InvalidDimension(width, height, "grid dimensions must be positive")
    if width > max_width or height > max_height:
        raise InvalidDimension(width, height, f"grid dimensions exceed {max_width}x{max_height}")


class DotGrid:
    """Cells of 2x4 dots, one packed byte and one optional colour per cell.

    Dots are addressed in absolute dot coordinates, so a grid of ``width`` x
    ``height`` cells has ``2 * width`` x ``4 * height`` dots. Cells are addressed
    in cell coordinates.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        max_width: int = MAX_GRID_WIDTH,
        max_height: int = MAX_GRID_HEIGHT,
    ):
        check_dimensions(width, height, max_width, max_height)
        self.max_width = max_width
        self.max_height = max_height
        self.patterns = np.zeros((height, width), dtype=np.uint8)
        self.colors = np.zeros((height, width, 3), dtype=np.uint8)
        self.color_mask = np.zeros((height, width), dtype=bool)

    @property
    def width(self) -> int:
        return self.patterns.shape[1]

    @property
    def height(self) -> int:
        return self.patterns.shape[0]

    @property
    def dot_width(self) -> int:
        return self.width * CELL_WIDTH

    @property
    def dot_height(self) -> int:
        return self.height * CELL_HEIGHT

    @property
    def dimensions(self) -> tuple[int, int]:
        return (self.width, self.height)

    def _check_dot(self, x: int, y: int) -> None:
        if not (0 <= x < self.dot_width and 0 <= y < self.dot_height):
            raise OutOfBounds(x, y, self.dot_width, self.dot_height)

    def _check_cell(self, cx: int, cy: int) -> None:
        if not (0 <= cx < self.width and 0 <= cy < self.height):
            raise OutOfBounds(cx, cy, self.width, self.height)

    def set_dot(self, x: int, y: int, value: bool = True) -> None:
        self._check_dot(x, y)
        bit = DOT_BITS[y % CELL_HEIGHT][x % CELL_WIDTH]
        cy, cx = y // CELL_HEIGHT, x // CELL_WIDTH
        if value:
            self.patterns[cy, cx] |= bit
        else:
            self.patterns[cy, cx] &= ~bit & 0xFF

    def get_dot(self, x: int, y: int) -> bool:
        self._check_dot(x, y)
        bit = DOT_BITS[y % CELL_HEIGHT][x % CELL_WIDTH]
        return bool(self.patterns[y // CELL_HEIGHT, x // CELL_WIDTH] & bit)

    def get_cell(self, cx: int, cy: int) -> int:
        self._check_cell(cx, cy)
        return int(self.patterns[cy, cx])

    def set_cell(self, cx: int, cy: int, pattern: int) -> None:
        self._check_cell(cx, cy)
        self.patterns[cy, cx] = pattern & 0xFF

    def get_char(self, cx: int, cy: int) -> str:
        return to_unicode(self.get_cell(cx, cy))

    def is_empty(self, cx: int, cy: int) -> bool:
        return self.get_cell(cx, cy) == 0

    def set_cell_color(self, cx: int, cy: int, color: Color | tuple[int, int, int]) -> None:
        self._check_cell(cx, cy)
        self.colors[cy, cx] = color
        self.color_mask[cy, cx] = True

    def get_color(self, cx: int, cy: int) -> Color | None:
        self._check_cell(cx, cy)
        if not self.color_mask[cy, cx]:
            return None
        r, g, b = self.colors[cy, cx]
        return Color(int(r), int(g), int(b))

    def clear_colors(self) -> None:
        self.colors.fill(0)
        self.color_mask.fill(False)

    def clear(self) -> None:
        self.patterns.fill(0)
        self.clear_colors()

    def clear_region(self, cx: int, cy: int, width: int, height: int) -> None:
        """Reset dots and colour of a rectangle of cells."""
        if cx < 0 or cy < 0 or width < 0 or height < 0:
            raise OutOfBounds(cx, cy, self.width, self.height)
        end_x, end_y = cx + width, cy + height
        if end_x > self.width or end_y > self.height:
            raise OutOfBounds(end_x - 1, end_y - 1, self.width, self.height)
        self.patterns[cy:end_y, cx:end_x] = 0
        self.colors[cy:end_y, cx:end_x] = 0
        self.color_mask[cy:end_y, cx:end_x] = False

    def resize(self, new_width: int, new_height: int) -> None:
        """Change the cell dimensions, keeping every dot inside the overlap."""
        check_dimensions(new_width, new_height, self.max_width, self.max_height)
        if (new_width, new_height) == self.dimensions:
            return
        logger.debug("Resizing grid %dx%d -> %dx%d", self.width, self.height, new_width, new_height)
        keep_w = min(self.width, new_width)
        keep_h = min(self.height, new_height)

        patterns = np.zeros((new_height, new_width), dtype=np.uint8)
        colors = np.zeros((new_height, new_width, 3), dtype=np.uint8)
        color_mask = np.zeros((new_height, new_width), dtype=bool)
        patterns[:keep_h, :keep_w] = self.patterns[:keep_h, :keep_w]
        colors[:keep_h, :keep_w] = self.colors[:keep_h, :keep_w]
        color_mask[:keep_h, :keep_w] = self.color_mask[:keep_h, :keep_w]

        self.patterns = patterns
        self.colors = colors
        self.color_mask = color_mask

    def raw_patterns(self) -> bytes:
        """Packed dot bytes in row-major order."""
        return self.patterns.tobytes()

    def load_patterns(self, data: bytes | np.ndarray) -> None:
        """Replace every cell's dot byte; ``data`` must hold exactly one byte per cell."""
        arr = np.frombuffer(data, dtype=np.uint8) if isinstance(data, (bytes, bytearray)) else np.asarray(data)
        if arr.size != self.patterns.size:
            raise InvalidDimension(self.width, self.height, f"expected {self.patterns.size} cells, got {arr.size}")
        self.patterns[...] = arr.reshape(self.patterns.shape)

    def copy(self) -> "DotGrid":
        clone = DotGrid.__new__(DotGrid)
        clone.max_width = self.max_width
        clone.max_height = self.max_height
        clone.patterns = self.patterns.copy()
        clone.colors = self.colors.copy()
        clone.color_mask = self.color_mask.copy()
        return clone

    def to_unicode_grid(self) -> list[list[str]]:
        return [[to_unicode(p) for p in row] for row in self.patterns.tolist()]

    def to_lines(self) -> list[str]:
        return ["".join(row) for row in self.to_unicode_grid()]

    def __str__(self) -> str:
        return "\n".join(self.to_lines())

    def __repr__(self) -> str:
        return f"DotGrid(width={self.width}, height={self.height})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DotGrid):
            return NotImplemented
        return (
            self.dimensions == other.dimensions
            and np.array_equal(self.patterns, other.patterns)
            and np.array_equal(self.color_mask, other.color_mask)
            and np.array_equal(self.colors[self.color_mask], other.colors[other.color_mask])
        )
