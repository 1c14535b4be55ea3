import logging

import numpy as np

from dotpic.errors import InvalidDimension
from dotpic.grid import CELL_HEIGHT, CELL_WIDTH, DOT_BITS, DotGrid

logger = logging.getLogger(__name__)

_BIT_WEIGHTS = np.array(DOT_BITS, dtype=np.uint8)  # (4, 2)


def pack_cells(bitmap: np.ndarray) -> np.ndarray:
    """Pack an ink bitmap into one dot byte per 2x4 block.

    The bitmap is padded with ``False`` on the right and bottom up to whole
    cells. Returns a uint8 array of shape (ceil(h / 4), ceil(w / 2)).
    """
    bitmap = np.asarray(bitmap, dtype=bool)
    if bitmap.ndim != 2 or bitmap.size == 0:
        h, w = bitmap.shape[:2] if bitmap.ndim >= 2 else (0, 0)
        raise InvalidDimension(w, h, "bitmap must be a non-empty 2D array")
    h, w = bitmap.shape
    rows = -(-h // CELL_HEIGHT)
    cols = -(-w // CELL_WIDTH)
    padded = np.zeros((rows * CELL_HEIGHT, cols * CELL_WIDTH), dtype=bool)
    padded[:h, :w] = bitmap

    # (rows, 4, cols, 2) -> (rows, cols, 4, 2)
    blocks = padded.reshape(rows, CELL_HEIGHT, cols, CELL_WIDTH).transpose(0, 2, 1, 3)
    return (blocks * _BIT_WEIGHTS).sum(axis=(2, 3), dtype=np.uint16).astype(np.uint8)


def pixels_to_dots(bitmap: np.ndarray, grid: DotGrid | None = None) -> DotGrid:
    """Map an ink bitmap onto a dot grid, pixel (x, y) becoming dot (x, y).

    With ``grid`` given, its patterns are replaced in place and it must have
    exactly the packed size; otherwise a new grid is allocated.
    """
    packed = pack_cells(bitmap)
    rows, cols = packed.shape
    if grid is None:
        grid = DotGrid(cols, rows)
    elif grid.dimensions != (cols, rows):
        raise InvalidDimension(cols, rows, f"bitmap does not fit a {grid.width}x{grid.height} grid")
    grid.load_patterns(packed)
    logger.debug("Mapped %dx%d bitmap onto %dx%d cells", bitmap.shape[1], bitmap.shape[0], cols, rows)
    return grid
