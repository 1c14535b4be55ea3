"""Character ramps that stand in for tone, one character per cell."""

import logging
import math

import numpy as np

from dotpic.errors import InvalidDimension, UnsupportedConfiguration
from dotpic.grid import BRAILLE_BASE, DotGrid

logger = logging.getLogger(__name__)

MAX_DENSITY_CHARACTERS = 256

ASCII_DENSITY = " .'`^\",:;Il!i><~+_-?][}{1)(|/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$"
SIMPLE_DENSITY = " .:-=+*#%@"
BLOCKS_DENSITY = " ░▒▓█"
BRAILLE_DENSITY = "⠀⠁⠃⠇⠏⠟⠿⡿⣿"


class DensitySet:
    """An ordered ramp of characters from empty (0.0) to full (1.0)."""

    def __init__(self, name: str, characters: str):
        if not characters:
            raise UnsupportedConfiguration(f"Density set {name!r} has no characters")
        if len(characters) > MAX_DENSITY_CHARACTERS:
            raise UnsupportedConfiguration(
                f"Density set {name!r} has {len(characters)} characters, at most {MAX_DENSITY_CHARACTERS} allowed"
            )
        self.name = name
        self.characters = characters

    @classmethod
    def ascii(cls) -> "DensitySet":
        return cls("ASCII", ASCII_DENSITY)

    @classmethod
    def simple(cls) -> "DensitySet":
        return cls("Simple", SIMPLE_DENSITY)

    @classmethod
    def blocks(cls) -> "DensitySet":
        return cls("Blocks", BLOCKS_DENSITY)

    @classmethod
    def braille(cls) -> "DensitySet":
        return cls("Braille", BRAILLE_DENSITY)

    def __len__(self) -> int:
        return len(self.characters)

    def map(self, intensity: float) -> str:
        """Character for an intensity, clamped to [0, 1]; NaN maps to the first character."""
        if math.isnan(intensity):
            return self.characters[0]
        clamped = min(max(intensity, 0.0), 1.0)
        return self.characters[round(clamped * (len(self.characters) - 1))]

    def indices(self, intensities: np.ndarray) -> np.ndarray:
        values = np.nan_to_num(np.asarray(intensities, dtype=np.float64), nan=0.0, posinf=1.0, neginf=0.0)
        return np.rint(np.clip(values, 0.0, 1.0) * (len(self.characters) - 1)).astype(np.int64)

    def render(self, intensities: np.ndarray) -> str:
        """Text for a 2D intensity buffer, one line per row."""
        intensities = np.asarray(intensities)
        if intensities.ndim != 2:
            raise InvalidDimension(0, 0, f"intensity buffer must be 2D, got shape {intensities.shape}")
        chars = self.characters
        return "\n".join("".join(chars[i] for i in row) for row in self.indices(intensities).tolist())

    def __repr__(self) -> str:
        return f"DensitySet({self.name!r}, {self.characters!r})"


_DENSITY_SETS = {
    "ascii": DensitySet.ascii,
    "simple": DensitySet.simple,
    "blocks": DensitySet.blocks,
    "braille": DensitySet.braille,
}


def get_density_set(name: str) -> DensitySet:
    key = name.strip().lower()
    if key not in _DENSITY_SETS:
        raise UnsupportedConfiguration(f"Unknown density set: {name!r} (choose from {', '.join(_DENSITY_SETS)})")
    return _DENSITY_SETS[key]()


def render_density(grid: DotGrid, intensities: np.ndarray, density: DensitySet) -> DotGrid:
    """Fill each cell of ``grid`` with the braille character ``density`` picks for it.

    ``intensities`` must have one value per cell, shaped ``(height, width)``,
    and every character of ``density`` must be a braille pattern.
    """
    intensities = np.asarray(intensities)
    if intensities.shape != (grid.height, grid.width):
        raise InvalidDimension(
            intensities.shape[1] if intensities.ndim > 1 else 0,
            intensities.shape[0] if intensities.ndim > 0 else 0,
            f"intensities do not match a {grid.width}x{grid.height} grid",
        )
    patterns = []
    for ch in density.characters:
        offset = ord(ch) - BRAILLE_BASE
        if not 0 <= offset <= 0xFF:
            raise UnsupportedConfiguration(f"Density set {density.name!r} contains non-braille character {ch!r}")
        patterns.append(offset)
    grid.load_patterns(np.array(patterns, dtype=np.uint8)[density.indices(intensities)])
    logger.debug("Density-rendered %dx%d grid with %s", grid.width, grid.height, density.name)
    return grid


def coverage(gray: np.ndarray) -> np.ndarray:
    """Ink coverage of a grayscale buffer: 1.0 for black, 0.0 for white."""
    return 1.0 - np.asarray(gray, dtype=np.float64) / 255.0
