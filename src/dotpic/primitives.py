"""Drawing on a DotGrid in dot coordinates.

Every primitive clips silently: dots falling outside the grid are skipped, so
shapes may extend past the canvas. Passing ``color`` also colours each cell
that receives a dot.
"""

import math
from collections.abc import Sequence

from dotpic.errors import InvalidDimension, UnsupportedConfiguration
from dotpic.grid import CELL_HEIGHT, CELL_WIDTH, Color, DotGrid

Point = tuple[int, int]


def _plot(grid: DotGrid, x: int, y: int, color: Color | None) -> None:
    if 0 <= x < grid.dot_width and 0 <= y < grid.dot_height:
        grid.set_dot(x, y)
        if color is not None:
            grid.set_cell_color(x // CELL_WIDTH, y // CELL_HEIGHT, color)


def _hspan(grid: DotGrid, x0: int, x1: int, y: int, color: Color | None) -> None:
    """Set every dot from x0 to x1 inclusive on row y."""
    if not 0 <= y < grid.dot_height:
        return
    for x in range(max(x0, 0), min(x1, grid.dot_width - 1) + 1):
        _plot(grid, x, y, color)


def _check_thickness(thickness: int) -> None:
    if thickness < 1:
        raise UnsupportedConfiguration(f"Thickness must be at least 1, got {thickness}")


def _offsets(thickness: int) -> range:
    """``thickness`` consecutive integers centred on zero."""
    return range(-(thickness // 2), thickness - thickness // 2)


def draw_line(grid: DotGrid, x0: int, y0: int, x1: int, y1: int, color: Color | None = None) -> None:
    """Bresenham line between two dots, both endpoints included."""
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy
    x, y = x0, y0
    while True:
        _plot(grid, x, y, color)
        if x == x1 and y == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy


def draw_line_thick(
    grid: DotGrid,
    x0: int,
    y0: int,
    x1: int,
    y1: int,
    thickness: int,
    color: Color | None = None,
) -> None:
    """Line drawn as ``thickness`` parallel copies offset along its perpendicular."""
    _check_thickness(thickness)
    if thickness == 1:
        draw_line(grid, x0, y0, x1, y1, color)
        return

    dx = x1 - x0
    dy = y1 - y0
    length = math.hypot(dx, dy)
    if length == 0:
        span = _offsets(thickness)
        for oy in span:
            _hspan(grid, x0 + span[0], x0 + span[-1], y0 + oy, color)
        return

    px = -dy / length
    py = dx / length
    drawn = set()
    for offset in _offsets(thickness):
        ox = round(px * offset)
        oy = round(py * offset)
        if (ox, oy) in drawn:
            continue
        drawn.add((ox, oy))
        draw_line(grid, x0 + ox, y0 + oy, x1 + ox, y1 + oy, color)


def _circle_octants(radius: int):
    """Yield (x, y) of the midpoint walk over one octant, x >= y >= 0."""
    x = radius
    y = 0
    err = 1 - radius
    while x >= y:
        yield x, y
        y += 1
        if err < 0:
            err += 2 * y + 1
        else:
            x -= 1
            err += 2 * (y - x) + 1


def draw_circle(grid: DotGrid, cx: int, cy: int, radius: int, color: Color | None = None) -> None:
    """Midpoint circle outline."""
    if radius < 0:
        raise InvalidDimension(radius, radius, "radius must not be negative")
    if radius == 0:
        _plot(grid, cx, cy, color)
        return
    for x, y in _circle_octants(radius):
        for px, py in ((x, y), (y, x), (-y, x), (-x, y), (-x, -y), (-y, -x), (y, -x), (x, -y)):
            _plot(grid, cx + px, cy + py, color)


def draw_circle_filled(grid: DotGrid, cx: int, cy: int, radius: int, color: Color | None = None) -> None:
    """Filled circle, one horizontal span per row from the midpoint walk."""
    if radius < 0:
        raise InvalidDimension(radius, radius, "radius must not be negative")
    if radius == 0:
        _plot(grid, cx, cy, color)
        return
    for x, y in _circle_octants(radius):
        _hspan(grid, cx - x, cx + x, cy + y, color)
        _hspan(grid, cx - x, cx + x, cy - y, color)
        _hspan(grid, cx - y, cx + y, cy + x, color)
        _hspan(grid, cx - y, cx + y, cy - x, color)


def _half_widths(radius: int) -> dict[int, int]:
    """Half span width per row offset of a midpoint-filled circle."""
    widths: dict[int, int] = {}
    for x, y in _circle_octants(radius):
        for row, half in ((y, x), (x, y)):
            widths[row] = max(widths.get(row, 0), half)
    return widths


def draw_circle_thick(
    grid: DotGrid,
    cx: int,
    cy: int,
    radius: int,
    thickness: int,
    color: Color | None = None,
) -> None:
    """Ring whose outer edge is the circle of ``radius``, growing inwards."""
    _check_thickness(thickness)
    if radius < 0:
        raise InvalidDimension(radius, radius, "radius must not be negative")
    if thickness == 1:
        draw_circle(grid, cx, cy, radius, color)
        return
    inner_radius = radius - thickness
    if inner_radius <= 0:
        draw_circle_filled(grid, cx, cy, radius, color)
        return

    outer = _half_widths(radius)
    inner = _half_widths(inner_radius)
    for row, half in outer.items():
        for y in {cy + row, cy - row}:
            if row in inner:
                hole = inner[row]
                _hspan(grid, cx - half, cx - hole - 1, y, color)
                _hspan(grid, cx + hole + 1, cx + half, y, color)
            else:
                _hspan(grid, cx - half, cx + half, y, color)


def _check_rectangle(width: int, height: int) -> None:
    if width < 1 or height < 1:
        raise InvalidDimension(width, height, "rectangle must be at least 1x1")


def draw_rectangle(grid: DotGrid, x: int, y: int, width: int, height: int, color: Color | None = None) -> None:
    _check_rectangle(width, height)
    right = x + width - 1
    bottom = y + height - 1
    draw_line(grid, x, y, right, y, color)
    draw_line(grid, x, bottom, right, bottom, color)
    draw_line(grid, x, y, x, bottom, color)
    draw_line(grid, right, y, right, bottom, color)


def draw_rectangle_filled(grid: DotGrid, x: int, y: int, width: int, height: int, color: Color | None = None) -> None:
    _check_rectangle(width, height)
    for row in range(y, y + height):
        _hspan(grid, x, x + width - 1, row, color)


def draw_rectangle_thick(
    grid: DotGrid,
    x: int,
    y: int,
    width: int,
    height: int,
    thickness: int,
    color: Color | None = None,
) -> None:
    """Rectangle outline whose border grows inwards from the given bounds."""
    _check_rectangle(width, height)
    _check_thickness(thickness)
    for inset in range(thickness):
        w = width - 2 * inset
        h = height - 2 * inset
        if w < 1 or h < 1:
            break
        draw_rectangle(grid, x + inset, y + inset, w, h, color)


def _check_polygon(vertices: Sequence[Point]) -> None:
    if len(vertices) < 3:
        raise InvalidDimension(len(vertices), 1, "polygon needs at least 3 vertices")


def draw_polygon(grid: DotGrid, vertices: Sequence[Point], color: Color | None = None) -> None:
    """Polygon outline; the last vertex is joined back to the first."""
    _check_polygon(vertices)
    for (x0, y0), (x1, y1) in zip(vertices, [*vertices[1:], vertices[0]]):
        draw_line(grid, x0, y0, x1, y1, color)


def draw_polygon_filled(grid: DotGrid, vertices: Sequence[Point], color: Color | None = None) -> None:
    """Scanline fill with the even-odd rule, followed by the outline.

    Vertices are dot centres. Each row is intersected with every edge using a
    half-open crossing test, so vertices shared by two edges are counted once
    and horizontal edges are skipped. Works for concave and self-intersecting
    polygons.
    """
    _check_polygon(vertices)
    edges = [(a, b) for a, b in zip(vertices, [*vertices[1:], vertices[0]]) if a[1] != b[1]]
    ys = [v[1] for v in vertices]
    first_row = max(min(ys), 0)
    last_row = min(max(ys), grid.dot_height - 1)

    for y in range(first_row, last_row + 1):
        crossings = []
        for (x0, y0), (x1, y1) in edges:
            if (y0 <= y) != (y1 <= y):
                crossings.append(x0 + (y - y0) * (x1 - x0) / (y1 - y0))
        crossings.sort()
        for start, end in zip(crossings[0::2], crossings[1::2]):
            _hspan(grid, math.ceil(start), math.floor(end), y, color)

    draw_polygon(grid, vertices, color)
