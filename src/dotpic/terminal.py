import os
import sys
from collections.abc import Iterable
from typing import TextIO

from dotpic.animation import CellChange
from dotpic.colour import intensity_to_ansi256, rgb_to_intensity
from dotpic.grid import Color, DotGrid, to_unicode

RESET = "\033[0m"
HOME = "\033[H"
CLEAR = "\033[2J"
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"


def get_terminal_size() -> tuple[int, int]:
    """Return (columns, rows) of the terminal, or (80, 24) if not a tty."""
    if not sys.stdout.isatty():
        return (80, 24)
    size = os.get_terminal_size()
    return (size.columns, size.lines)


def _fg(color: Color, gray256: bool = False) -> str:
    if gray256:
        return f"\033[38;5;{intensity_to_ansi256(rgb_to_intensity(color))}m"
    return f"\033[38;2;{color.r};{color.g};{color.b}m"


def format_grid(grid: DotGrid, colour: bool = False, gray256: bool = False) -> str:
    """Render a whole grid as text, wrapping coloured cells in truecolor escapes.

    With ``gray256`` each colour is reduced to its luma and written as one of
    the 24 gray steps of the 256-colour palette instead.
    """
    if not colour:
        return str(grid)
    out = []
    for y, row in enumerate(grid.patterns.tolist()):
        parts = []
        for x, pattern in enumerate(row):
            color = grid.get_color(x, y)
            if color is None:
                parts.append(RESET + to_unicode(pattern))
            else:
                parts.append(_fg(color, gray256) + to_unicode(pattern))
        parts.append(RESET)
        out.append("".join(parts))
    return "\n".join(out)


def format_changes(
    changes: Iterable[CellChange], origin: tuple[int, int] = (0, 0), gray256: bool = False
) -> str:
    """Cursor-addressed escape string that repaints only the given cells."""
    ox, oy = origin
    parts = []
    for change in changes:
        parts.append(f"\033[{oy + change.y + 1};{ox + change.x + 1}H")
        if change.color is None:
            parts.append(change.char)
        else:
            parts.append(_fg(change.color, gray256) + change.char + RESET)
    return "".join(parts)


class TerminalWriter:
    """Write grids and differential updates to a text stream as ANSI output."""

    def __init__(self, stream: TextIO | None = None, colour: bool = True, gray256: bool = False):
        self.stream = stream if stream is not None else sys.stdout
        self.colour = colour
        self.gray256 = gray256

    def write_grid(self, grid: DotGrid) -> None:
        self.stream.write(HOME + format_grid(grid, colour=self.colour, gray256=self.gray256) + "\n")
        self.stream.flush()

    def write_changes(self, changes: list[CellChange]) -> None:
        if not changes:
            return
        if not self.colour:
            changes = [change._replace(color=None) for change in changes]
        self.stream.write(format_changes(changes, gray256=self.gray256))
        self.stream.flush()

    __call__ = write_changes

    def begin(self) -> None:
        self.stream.write(CLEAR + HOME + HIDE_CURSOR)
        self.stream.flush()

    def end(self) -> None:
        self.stream.write(RESET + SHOW_CURSOR + "\n")
        self.stream.flush()
