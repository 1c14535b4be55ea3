import logging
from typing import NamedTuple

import numpy as np

from dotpic.grid import Color, DotGrid, to_unicode

logger = logging.getLogger(__name__)


class FrameBuffer:
    """Two same-size grids whose front and back roles swap without copying.

    Draw into ``get_back_buffer()``, then call ``swap_buffers()``; the grid
    just drawn becomes the front buffer for rendering. The back buffer is not
    cleared on swap, so callers repopulate it fully every frame.
    """

    def __init__(self, width: int, height: int):
        self._front = DotGrid(width, height)
        self._back = DotGrid(width, height)

    @property
    def width(self) -> int:
        return self._front.width

    @property
    def height(self) -> int:
        return self._front.height

    def get_back_buffer(self) -> DotGrid:
        return self._back

    def get_front_buffer(self) -> DotGrid:
        return self._front

    def swap_buffers(self) -> None:
        self._front, self._back = self._back, self._front

    def resize(self, width: int, height: int) -> None:
        self._front.resize(width, height)
        self._back.resize(width, height)


class CellChange(NamedTuple):
    x: int
    y: int
    char: str
    color: Color | None


class DifferentialRenderer:
    """Compute which cells changed since the previously rendered grid.

    The renderer keeps its own copy of the last grid, so the caller may keep
    mutating theirs. The first call, a call after ``invalidate()``, and a call
    with different dimensions report every cell.
    """

    def __init__(self):
        self._snapshot: DotGrid | None = None

    @property
    def has_previous_frame(self) -> bool:
        return self._snapshot is not None

    def invalidate(self) -> None:
        logger.debug("Differential renderer invalidated; next frame is a full render")
        self._snapshot = None

    @staticmethod
    def _changed_mask(current: DotGrid, previous: DotGrid) -> np.ndarray:
        changed = current.patterns != previous.patterns
        changed |= current.color_mask != previous.color_mask
        changed |= current.color_mask & np.any(current.colors != previous.colors, axis=2)
        return changed

    def count_changed_cells(self, current: DotGrid, previous: DotGrid) -> int:
        if current.dimensions != previous.dimensions:
            return current.width * current.height
        return int(self._changed_mask(current, previous).sum())

    def diff_render(self, grid: DotGrid) -> list[CellChange]:
        """Changed cells of ``grid`` in row-major order, then remember ``grid``."""
        previous = self._snapshot
        if previous is None or previous.dimensions != grid.dimensions:
            changed = np.ones((grid.height, grid.width), dtype=bool)
        else:
            changed = self._changed_mask(grid, previous)

        changes = [
            CellChange(int(x), int(y), to_unicode(grid.patterns[y, x]), grid.get_color(int(x), int(y)))
            for y, x in zip(*np.nonzero(changed))
        ]
        self._snapshot = grid.copy()
        logger.debug("Differential render: %d of %d cells changed", len(changes), grid.width * grid.height)
        return changes
