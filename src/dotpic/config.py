from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from dotpic.errors import UnsupportedConfiguration

if TYPE_CHECKING:
    from dotpic.colour import ColorScheme

BAYER_SIZES = (2, 4, 8, 16)

BRIGHTNESS_RANGE = (0.0, 2.0)
CONTRAST_RANGE = (0.0, 2.0)
GAMMA_RANGE = (0.1, 3.0)

# Ratio between source and target aspect ratios above which resizing switches
# to the bilinear filter.
EXTREME_ASPECT_RATIO = 10.0

# Sources that would need more enlargement than this are rendered at their own size.
MAX_UPSCALE = 2.0


@dataclass(frozen=True)
class NoDither:
    pass


@dataclass(frozen=True)
class FloydSteinberg:
    pass


@dataclass(frozen=True)
class Atkinson:
    pass


@dataclass(frozen=True)
class Bayer:
    size: int = 8

    def __post_init__(self):
        if self.size not in BAYER_SIZES:
            raise UnsupportedConfiguration(f"Bayer matrix size must be one of {BAYER_SIZES}, got {self.size}")


DitherMethod = NoDither | FloydSteinberg | Atkinson | Bayer


@dataclass(frozen=True)
class Auto:
    """Pick the threshold with Otsu's method."""


@dataclass(frozen=True)
class Manual:
    value: int

    def __post_init__(self):
        if not 0 <= self.value <= 255:
            raise UnsupportedConfiguration(f"Manual threshold must be within 0-255, got {self.value}")


ThresholdMode = Auto | Manual


class ColorMode(Enum):
    MONOCHROME = "monochrome"
    COLOR = "color"
    GRAYSCALE = "grayscale"


@dataclass(frozen=True)
class Average:
    """Mean colour of the pixels in a cell."""


@dataclass(frozen=True)
class Dominant:
    """Most frequent exact colour in a cell; the earliest wins ties."""


@dataclass(frozen=True)
class CenterPixel:
    pass


SamplingStrategy = Average | Dominant | CenterPixel


def parse_dither(name: str, bayer_size: int = 8) -> DitherMethod:
    """Turn a command-line name such as ``floyd-steinberg`` or ``bayer-4`` into a dither variant."""
    key = name.strip().lower().replace("_", "-")
    if key.startswith("bayer"):
        suffix = key[len("bayer") :].lstrip("-")
        if suffix:
            try:
                bayer_size = int(suffix)
            except ValueError:
                raise UnsupportedConfiguration(f"Unknown dither method: {name!r}") from None
        return Bayer(bayer_size)
    match key:
        case "none":
            return NoDither()
        case "floyd-steinberg" | "fs":
            return FloydSteinberg()
        case "atkinson":
            return Atkinson()
    raise UnsupportedConfiguration(f"Unknown dither method: {name!r}")


def parse_sampling(name: str) -> SamplingStrategy:
    match name.strip().lower().replace("_", "-"):
        case "average" | "mean":
            return Average()
        case "dominant":
            return Dominant()
        case "center" | "centre" | "center-pixel":
            return CenterPixel()
    raise UnsupportedConfiguration(f"Unknown colour sampling strategy: {name!r}")


def _check_range(name: str, value: float, bounds: tuple[float, float]) -> None:
    lo, hi = bounds
    if not lo <= value <= hi:
        raise UnsupportedConfiguration(f"{name} must be within {lo}-{hi}, got {value}")


@dataclass(frozen=True)
class RenderConfig:
    dither: DitherMethod = field(default_factory=NoDither)
    threshold: ThresholdMode = field(default_factory=Auto)
    brightness: float = 1.0
    contrast: float = 1.0
    gamma: float = 1.0
    color_mode: ColorMode = ColorMode.MONOCHROME
    extreme_aspect_ratio: float = EXTREME_ASPECT_RATIO
    max_upscale: float | None = MAX_UPSCALE
    sampling: SamplingStrategy = field(default_factory=Average)
    color_scheme: "ColorScheme | None" = None

    def __post_init__(self):
        if not isinstance(self.dither, (NoDither, FloydSteinberg, Atkinson, Bayer)):
            raise UnsupportedConfiguration(f"Unsupported dither method: {self.dither!r}")
        if not isinstance(self.threshold, (Auto, Manual)):
            raise UnsupportedConfiguration(f"Unsupported threshold mode: {self.threshold!r}")
        if not isinstance(self.color_mode, ColorMode):
            raise UnsupportedConfiguration(f"Unsupported colour mode: {self.color_mode!r}")
        _check_range("brightness", self.brightness, BRIGHTNESS_RANGE)
        _check_range("contrast", self.contrast, CONTRAST_RANGE)
        _check_range("gamma", self.gamma, GAMMA_RANGE)
        if not math.isfinite(self.extreme_aspect_ratio) or self.extreme_aspect_ratio < 1.0:
            raise UnsupportedConfiguration(f"extreme_aspect_ratio must be >= 1.0, got {self.extreme_aspect_ratio}")
        if self.max_upscale is not None and not self.max_upscale >= 1.0:
            raise UnsupportedConfiguration(f"max_upscale must be >= 1.0, got {self.max_upscale}")
        if not isinstance(self.sampling, (Average, Dominant, CenterPixel)):
            raise UnsupportedConfiguration(f"Unsupported colour sampling strategy: {self.sampling!r}")
        if self.color_scheme is not None and not callable(getattr(self.color_scheme, "sample_array", None)):
            raise UnsupportedConfiguration(f"Unsupported colour scheme: {self.color_scheme!r}")

    @property
    def emits_colour(self) -> bool:
        """True when rendered cells carry a colour."""
        return self.color_mode is not ColorMode.MONOCHROME or self.color_scheme is not None
