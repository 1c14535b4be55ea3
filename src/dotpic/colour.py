"""Intensity-to-colour schemes for tinting dot grids."""

import logging

import numpy as np
from PIL import ImageColor

from dotpic.errors import InvalidDimension, UnsupportedConfiguration
from dotpic.grid import Color, DotGrid
from dotpic.threshold import LUMA_WEIGHTS

logger = logging.getLogger(__name__)


class ColorScheme:
    """A gradient of colour stops spread evenly over intensities 0.0 to 1.0."""

    def __init__(self, name: str, colors: list[Color | tuple[int, int, int]]):
        if not colors:
            raise UnsupportedConfiguration(f"Colour scheme {name!r} has no colours")
        self.name = name
        self.colors = [Color(*c) for c in colors]

    @classmethod
    def from_colors(cls, name: str, colors: list[Color | tuple[int, int, int]]) -> "ColorScheme":
        """Build a gradient; unlike the constructor this requires at least two stops."""
        if len(colors) < 2:
            raise UnsupportedConfiguration(f"Colour scheme {name!r} needs at least 2 colours, got {len(colors)}")
        return cls(name, colors)

    def sample(self, intensity: float) -> Color:
        """Linearly interpolated colour at ``intensity``, clamped to [0, 1]; NaN reads as 0."""
        r, g, b = self.sample_array(np.array([intensity], dtype=np.float64))[0]
        return Color(int(r), int(g), int(b))

    def sample_array(self, intensities: np.ndarray) -> np.ndarray:
        """Vectorised ``sample``: returns ``intensities.shape + (3,)`` uint8."""
        values = np.nan_to_num(np.asarray(intensities, dtype=np.float64), nan=0.0, posinf=1.0, neginf=0.0)
        values = np.clip(values, 0.0, 1.0)
        stops = np.array(self.colors, dtype=np.float64)
        n = len(stops)
        if n == 1:
            return np.broadcast_to(stops[0], values.shape + (3,)).astype(np.uint8)

        scaled = values * (n - 1)
        lower = np.minimum(np.floor(scaled).astype(np.int64), n - 1)
        upper = np.minimum(lower + 1, n - 1)
        frac = (scaled - np.floor(scaled))[..., None]
        mixed = stops[lower] + (stops[upper] - stops[lower]) * frac
        return np.clip(np.rint(mixed), 0, 255).astype(np.uint8)

    def __repr__(self) -> str:
        return f"ColorScheme({self.name!r}, {len(self.colors)} colours)"


class ColorSchemeBuilder:
    """Collect ``(intensity, colour)`` stops and build a scheme ordered by intensity.

    Stops must lie in [0, 1] and be distinct. The built scheme spaces them
    evenly, so only their order matters.
    """

    def __init__(self, name: str):
        self.name = name
        self.stops: list[tuple[float, Color]] = []

    def add_color(self, intensity: float, color: Color | tuple[int, int, int]) -> "ColorSchemeBuilder":
        self.stops.append((intensity, Color(*color)))
        return self

    def build(self) -> ColorScheme:
        if len(self.stops) < 2:
            raise UnsupportedConfiguration(f"Colour scheme {self.name!r} needs at least 2 colours")
        for intensity, _ in self.stops:
            if not 0.0 <= intensity <= 1.0:
                raise UnsupportedConfiguration(f"Colour stop intensity must be within 0-1, got {intensity}")
        stops = sorted(self.stops, key=lambda stop: stop[0])
        for (a, _), (b, _) in zip(stops, stops[1:]):
            if a == b:
                raise UnsupportedConfiguration(f"Duplicate colour stop at intensity {a}")
        return ColorScheme(self.name, [color for _, color in stops])


def _hsv(hue: float) -> Color:
    return Color(*ImageColor.getrgb(f"hsv({hue:g}, 100%, 100%)"))


def rainbow() -> ColorScheme:
    """Red through yellow, green, cyan and blue to magenta."""
    return ColorScheme("rainbow", [_hsv(i / 6 * 300.0) for i in range(7)])


def heat_map() -> ColorScheme:
    return ColorScheme(
        "heat_map",
        [(0, 0, 0), (255, 0, 0), (255, 165, 0), (255, 255, 0), (255, 255, 255)],
    )


def blue_purple() -> ColorScheme:
    return ColorScheme("blue_purple", [(0, 0, 255), (128, 0, 127)])


def green_yellow() -> ColorScheme:
    return ColorScheme("green_yellow", [(0, 255, 0), (255, 255, 0)])


def cyan_magenta() -> ColorScheme:
    return ColorScheme("cyan_magenta", [(0, 255, 255), (255, 0, 255)])


def grayscale() -> ColorScheme:
    return ColorScheme("grayscale", [(0, 0, 0), (255, 255, 255)])


def monochrome() -> ColorScheme:
    return ColorScheme("monochrome", [(255, 255, 255)])


_SCHEMES = {
    "rainbow": rainbow,
    "heat_map": heat_map,
    "blue_purple": blue_purple,
    "green_yellow": green_yellow,
    "cyan_magenta": cyan_magenta,
    "grayscale": grayscale,
    "monochrome": monochrome,
}

_ALIASES = {
    "heatmap": "heat_map",
    "bluepurple": "blue_purple",
    "greenyellow": "green_yellow",
    "cyanmagenta": "cyan_magenta",
    "greyscale": "grayscale",
}


def list_schemes() -> list[str]:
    return list(_SCHEMES)


def get_scheme(name: str) -> ColorScheme:
    key = name.strip().lower().replace("-", "_")
    key = _ALIASES.get(key, key)
    if key not in _SCHEMES:
        raise UnsupportedConfiguration(f"Unknown colour scheme: {name!r} (choose from {', '.join(_SCHEMES)})")
    return _SCHEMES[key]()


def apply_color_scheme(intensities: np.ndarray, scheme: ColorScheme) -> np.ndarray:
    """Map a 2D intensity buffer (0.0-1.0) to a ``(h, w, 3)`` uint8 colour array."""
    intensities = np.asarray(intensities, dtype=np.float64)
    if intensities.ndim != 2:
        raise InvalidDimension(0, 0, f"intensity buffer must be 2D, got shape {intensities.shape}")
    return scheme.sample_array(intensities)


def apply_colors_to_grid(grid: DotGrid, colors: np.ndarray, mask: np.ndarray | None = None) -> None:
    """Set every cell's colour from a ``(height, width, 3)`` array; ``mask`` limits which cells get one."""
    colors = np.asarray(colors)
    if colors.shape != (grid.height, grid.width, 3):
        raise InvalidDimension(
            colors.shape[1] if colors.ndim > 1 else 0,
            colors.shape[0] if colors.ndim > 0 else 0,
            f"colours do not match a {grid.width}x{grid.height} grid",
        )
    grid.colors[...] = colors.astype(np.uint8)
    grid.color_mask[...] = True if mask is None else np.asarray(mask, dtype=bool)
    logger.debug("Applied colours to %dx%d grid", grid.width, grid.height)


def colorize(grid: DotGrid, intensities: np.ndarray, scheme: ColorScheme) -> DotGrid:
    """Colour each cell of ``grid`` by sampling ``scheme`` at the matching intensity."""
    apply_colors_to_grid(grid, apply_color_scheme(intensities, scheme))
    return grid


def rgb_to_intensity(colors: np.ndarray) -> np.ndarray:
    """BT.709 luma of RGB triples, truncated to uint8."""
    rgb = np.clip(np.asarray(colors, dtype=np.int64)[..., :3], 0, 255)
    # integer weights keep white at exactly 255
    weights = [round(w * 10_000) for w in LUMA_WEIGHTS]
    luma = (rgb[..., 0] * weights[0] + rgb[..., 1] * weights[1] + rgb[..., 2] * weights[2]) // 10_000
    return luma.astype(np.uint8)


def intensity_to_ansi256(intensity: int) -> int:
    """Index into the 24-step gray ramp (232-255) of the xterm 256-colour palette."""
    return 232 + (int(intensity) * 23) // 255
