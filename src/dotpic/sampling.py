from collections import Counter
from collections.abc import Callable

import numpy as np

from dotpic.config import Average, CenterPixel, Dominant, SamplingStrategy
from dotpic.errors import UnsupportedConfiguration
from dotpic.grid import CELL_HEIGHT, CELL_WIDTH


def sample_colours(
    rgb: np.ndarray,
    valid: np.ndarray | None = None,
    strategy: SamplingStrategy = Average(),
) -> tuple[np.ndarray, np.ndarray]:
    """Compute one colour for every 2x4 block of an RGB image.

    ``valid`` marks the pixels that belong to the picture; padding pixels are
    never sampled. The image is padded up to whole cells. ``strategy`` picks
    the mean, the most frequent colour or the middle valid pixel of a block.

    Returns ``(colours, has_colour)`` where colours is (rows, cols, 3) uint8
    and has_colour is (rows, cols) bool, False for blocks with no valid pixel.
    """
    arr = np.asarray(rgb, dtype=np.float64)[:, :, :3]
    h, w = arr.shape[:2]
    if valid is None:
        valid = np.ones((h, w), dtype=bool)

    rows = -(-h // CELL_HEIGHT)
    cols = -(-w // CELL_WIDTH)
    padded = np.zeros((rows * CELL_HEIGHT, cols * CELL_WIDTH, 3))
    padded[:h, :w] = arr
    mask = np.zeros((rows * CELL_HEIGHT, cols * CELL_WIDTH), dtype=bool)
    mask[:h, :w] = valid

    # (rows, cols, cell_h, cell_w, 3)
    cells = padded.reshape(rows, CELL_HEIGHT, cols, CELL_WIDTH, 3).transpose(0, 2, 1, 3, 4)
    cell_mask = mask.reshape(rows, CELL_HEIGHT, cols, CELL_WIDTH).transpose(0, 2, 1, 3)
    counts = cell_mask.sum(axis=(2, 3))

    match strategy:
        case Average():
            sums = (cells * cell_mask[..., None]).sum(axis=(2, 3))
            means = sums / np.maximum(counts, 1)[..., None]
            colours = np.clip(np.rint(means), 0, 255).astype(np.uint8)
        case Dominant():
            colours = _pick_per_cell(cells, cell_mask, _dominant)
        case CenterPixel():
            colours = _pick_per_cell(cells, cell_mask, lambda pixels: pixels[len(pixels) // 2])
        case _:
            raise UnsupportedConfiguration(f"Unsupported colour sampling strategy: {strategy!r}")
    return colours, counts > 0


def _dominant(pixels: np.ndarray) -> tuple[int, int, int]:
    # Counter keeps first-seen order among equal counts
    return Counter(map(tuple, pixels.tolist())).most_common(1)[0][0]


def _pick_per_cell(
    cells: np.ndarray, cell_mask: np.ndarray, pick: Callable[[np.ndarray], object]
) -> np.ndarray:
    """Apply ``pick`` to the valid pixels of each block, in row-major order within the block."""
    rows, cols = cell_mask.shape[:2]
    flat = np.clip(cells, 0, 255).astype(np.uint8).reshape(rows, cols, CELL_HEIGHT * CELL_WIDTH, 3)
    flat_mask = cell_mask.reshape(rows, cols, CELL_HEIGHT * CELL_WIDTH)
    out = np.zeros((rows, cols, 3), dtype=np.uint8)
    for r, c in np.ndindex(rows, cols):
        pixels = flat[r, c][flat_mask[r, c]]
        if len(pixels):
            out[r, c] = pick(pixels)
    return out
