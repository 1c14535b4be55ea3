import logging
import struct
from collections.abc import Callable
from pathlib import Path

import numpy as np

from dotpic.animation import CellChange, DifferentialRenderer
from dotpic.errors import InvalidDimension
from dotpic.grid import DotGrid
from dotpic.timing import FrameTimer, clamp_fps

logger = logging.getLogger(__name__)

MAGIC = b"DPIC"
FORMAT_VERSION = 1


class PrerenderedAnimation:
    """A sequence of grid snapshots played back at a fixed frame rate.

    File layout (big-endian): magic, version byte, frame rate, frame count,
    width and height in cells as 32-bit ints; then per frame the packed dot
    bytes, a colour flag byte and, when the flag is set, one mask byte and
    three RGB bytes per cell.
    """

    def __init__(self, frame_rate: int = 30):
        self.frame_rate = frame_rate
        self.frames: list[DotGrid] = []

    @property
    def frame_rate(self) -> int:
        return self._frame_rate

    @frame_rate.setter
    def frame_rate(self, value: int) -> None:
        self._frame_rate = clamp_fps(value)

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def dimensions(self) -> tuple[int, int] | None:
        return self.frames[0].dimensions if self.frames else None

    def add_frame(self, grid: DotGrid) -> "PrerenderedAnimation":
        """Store a copy of ``grid``; every frame must share the first frame's size."""
        if self.frames and grid.dimensions != self.frames[0].dimensions:
            raise InvalidDimension(
                grid.width, grid.height, f"frame size differs from {self.frames[0].width}x{self.frames[0].height}"
            )
        self.frames.append(grid.copy())
        return self

    def save(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        width, height = self.dimensions or (0, 0)
        with path.open("wb") as f:
            f.write(MAGIC)
            f.write(struct.pack("B", FORMAT_VERSION))
            f.write(struct.pack(">IIII", self.frame_rate, len(self.frames), width, height))
            for frame in self.frames:
                f.write(frame.raw_patterns())
                has_colour = bool(frame.color_mask.any())
                f.write(struct.pack("B", has_colour))
                if has_colour:
                    f.write(frame.color_mask.astype(np.uint8).tobytes())
                    f.write(frame.colors.tobytes())
        logger.info("Saved %d frames (%dx%d) to %s", len(self.frames), width, height, path)

    @classmethod
    def load(cls, path: str | Path) -> "PrerenderedAnimation":
        path = Path(path)
        with path.open("rb") as f:
            magic = f.read(4)
            if magic != MAGIC:
                raise ValueError(f"Not a DPIC file: {magic!r}")
            (version,) = struct.unpack("B", _read_exact(f, 1))
            if version != FORMAT_VERSION:
                raise ValueError(f"Unsupported format version: {version}")
            frame_rate, frame_count, width, height = struct.unpack(">IIII", _read_exact(f, 16))

            animation = cls(frame_rate)
            cells = width * height
            for _ in range(frame_count):
                grid = DotGrid(width, height)
                grid.load_patterns(_read_exact(f, cells))
                (has_colour,) = struct.unpack("B", _read_exact(f, 1))
                if has_colour:
                    mask = np.frombuffer(_read_exact(f, cells), dtype=np.uint8)
                    colors = np.frombuffer(_read_exact(f, cells * 3), dtype=np.uint8)
                    grid.color_mask[...] = mask.reshape(height, width).astype(bool)
                    grid.colors[...] = colors.reshape(height, width, 3)
                animation.frames.append(grid)
        logger.info("Loaded %d frames (%dx%d) from %s", frame_count, width, height, path)
        return animation

    def play(
        self,
        writer: Callable[[list[CellChange]], None],
        timer: FrameTimer | None = None,
        loop: bool = False,
    ) -> None:
        """Feed each frame's changed cells to ``writer`` at the animation's frame rate.

        With ``loop`` the sequence repeats until the caller interrupts it.
        """
        if not self.frames:
            return
        timer = timer or FrameTimer(self.frame_rate)
        renderer = DifferentialRenderer()
        while True:
            for frame in self.frames:
                writer(renderer.diff_render(frame))
                timer.wait_for_next_frame()
            if not loop:
                break


def _read_exact(f, size: int) -> bytes:
    data = f.read(size)
    if len(data) != size:
        raise ValueError(f"Truncated DPIC file: expected {size} bytes, got {len(data)}")
    return data
