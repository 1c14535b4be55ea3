import io
import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, ImageSequence

from dotpic.colour import rgb_to_intensity
from dotpic.config import ColorMode, RenderConfig
from dotpic.density import DensitySet, coverage
from dotpic.dither import binarize
from dotpic.errors import InvalidDimension, SourceUnavailable
from dotpic.grid import CELL_HEIGHT, CELL_WIDTH, DotGrid, check_dimensions
from dotpic.mapper import pack_cells
from dotpic.sampling import sample_colours
from dotpic.terminal import format_grid
from dotpic.threshold import apply_adjustments, to_grayscale

logger = logging.getLogger(__name__)

Source = Image.Image | str | Path | bytes | np.ndarray

# Pillow raises TypeError for arrays it has no mode for, e.g. five channels
_DECODE_ERRORS = (OSError, ValueError, TypeError, EOFError, Image.DecompressionBombError)


def load_image(source: Source) -> Image.Image:
    """Open and fully decode an image source, raising SourceUnavailable on any failure."""
    if isinstance(source, np.ndarray) and (source.ndim not in (2, 3) or 0 in source.shape):
        raise SourceUnavailable(f"Cannot use array of shape {source.shape} as an image")
    try:
        if isinstance(source, Image.Image):
            image = source
        elif isinstance(source, np.ndarray):
            image = Image.fromarray(np.ascontiguousarray(source, dtype=np.uint8))
        elif isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(source)
        image.load()
    except _DECODE_ERRORS as exc:
        raise SourceUnavailable(f"Cannot decode image source: {exc}") from exc
    if image.width == 0 or image.height == 0:
        raise SourceUnavailable(f"Image has no pixels: {image.width}x{image.height}")
    return image


def to_rgb(image: Image.Image) -> Image.Image:
    """RGB copy of an image with any transparency composited over white."""
    if image.mode in ("RGBA", "LA", "PA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        return Image.alpha_composite(background, rgba).convert("RGB")
    return image.convert("RGB")


def fit_dimensions(
    src_width: int,
    src_height: int,
    target_width: int,
    target_height: int,
    max_upscale: float | None = None,
) -> tuple[int, int]:
    """Largest size inside the target that keeps the source aspect ratio.

    A source that would need more than ``max_upscale`` enlargement keeps its
    own size instead.
    """
    if src_width <= 0 or src_height <= 0:
        raise InvalidDimension(src_width, src_height, "source image has no pixels")
    scale = min(target_width / src_width, target_height / src_height)
    if max_upscale is not None and scale > max_upscale:
        scale = 1.0
    width = min(target_width, max(1, round(src_width * scale)))
    height = min(target_height, max(1, round(src_height * scale)))
    return width, height


def aspect_mismatch(src_width: int, src_height: int, target_width: int, target_height: int) -> float:
    """Ratio between source and target aspect ratios, always >= 1."""
    ratio = (src_width / src_height) / (target_width / target_height)
    return max(ratio, 1 / ratio)


def select_filter(
    src_width: int,
    src_height: int,
    target_width: int,
    target_height: int,
    extreme_aspect_ratio: float,
) -> Image.Resampling:
    if aspect_mismatch(src_width, src_height, target_width, target_height) > extreme_aspect_ratio:
        return Image.BILINEAR
    return Image.LANCZOS


def resize_to_cells(image: Image.Image, width: int, height: int, config: RenderConfig) -> Image.Image:
    """Scale an RGB image to fit ``width`` x ``height`` cells of dots.

    The result is at most ``(width * 2, height * 4)`` pixels; the caller pads
    the remainder on the right and bottom.
    """
    target_w = width * CELL_WIDTH
    target_h = height * CELL_HEIGHT
    fit_w, fit_h = fit_dimensions(image.width, image.height, target_w, target_h, config.max_upscale)
    if (fit_w, fit_h) == image.size:
        return image
    resample = select_filter(image.width, image.height, target_w, target_h, config.extreme_aspect_ratio)
    logger.debug(
        "Resizing %dx%d -> %dx%d (%s)", image.width, image.height, fit_w, fit_h, Image.Resampling(resample).name
    )
    return image.resize((fit_w, fit_h), resample)


@dataclass
class _Rendered:
    """Pipeline output for one image, held until it is written into a grid."""

    patterns: np.ndarray
    colours: np.ndarray | None
    has_colour: np.ndarray | None

    def write_to(self, grid: DotGrid) -> None:
        grid.load_patterns(self.patterns)
        grid.clear_colors()
        if self.colours is not None:
            rows, cols = self.has_colour.shape
            grid.colors[:rows, :cols] = self.colours
            grid.color_mask[:rows, :cols] = self.has_colour


def _run_pipeline(image: Image.Image, width: int, height: int, config: RenderConfig) -> _Rendered:
    rgb_image = resize_to_cells(to_rgb(image), width, height, config)
    rgb = np.asarray(rgb_image, dtype=np.uint8)
    fit_h, fit_w = rgb.shape[:2]

    gray = to_grayscale(rgb)
    gray = apply_adjustments(gray, config.brightness, config.contrast, config.gamma)

    bitmap = np.zeros((height * CELL_HEIGHT, width * CELL_WIDTH), dtype=bool)
    bitmap[:fit_h, :fit_w] = binarize(gray, config.dither, config.threshold)
    patterns = pack_cells(bitmap)

    colours = has_colour = None
    if config.color_scheme is not None:
        levels, has_colour = sample_colours(np.stack((gray,) * 3, axis=-1))
        colours = config.color_scheme.sample_array(levels[..., 0] / 255.0)
    elif config.color_mode is ColorMode.COLOR:
        colours, has_colour = sample_colours(rgb, strategy=config.sampling)
    elif config.color_mode is ColorMode.GRAYSCALE:
        colours, has_colour = sample_colours(rgb, strategy=config.sampling)
        colours = np.repeat(rgb_to_intensity(colours)[..., None], 3, axis=-1)
    return _Rendered(patterns, colours, has_colour)


def render_image(source: Source, grid: DotGrid, config: RenderConfig | None = None) -> DotGrid:
    """Render a source into an existing grid at the grid's size.

    The grid is only written once the whole pipeline has succeeded, so on
    error it keeps the previous frame.
    """
    config = config or RenderConfig()
    image = load_image(source)
    rendered = _run_pipeline(image, grid.width, grid.height, config)
    rendered.write_to(grid)
    return grid


def image_to_grid(source: Source, width: int, height: int, config: RenderConfig | None = None) -> DotGrid:
    """Convert a source into a new ``width`` x ``height`` cell grid."""
    grid = DotGrid(width, height)
    return render_image(source, grid, config)


def fit_height(image: Image.Image, width: int) -> int:
    """Cell rows that keep the image's aspect ratio at ``width`` cells (dots are square)."""
    if image.width == 0 or image.height == 0:
        raise InvalidDimension(image.width, image.height, "source image has no pixels")
    dot_height = image.height * (width * CELL_WIDTH) / image.width
    return max(1, math.ceil(dot_height / CELL_HEIGHT))


def image_to_braille(
    source: Source,
    width: int,
    height: int | None = None,
    config: RenderConfig | None = None,
) -> str:
    config = config or RenderConfig()
    image = load_image(source)
    if height is None:
        height = fit_height(image, width)
    grid = image_to_grid(image, width, height, config)
    return format_grid(grid, colour=config.emits_colour, gray256=config.color_mode is ColorMode.GRAYSCALE)


def image_to_density(
    source: Source,
    width: int,
    height: int | None = None,
    density: DensitySet | None = None,
    config: RenderConfig | None = None,
) -> str:
    """Render a source as one density character per cell instead of dot patterns.

    Each cell takes the mean adjusted gray of its pixels; darker cells pick
    characters further along the ramp. Dithering and thresholds do not apply.
    """
    config = config or RenderConfig()
    density = density or DensitySet.simple()
    image = load_image(source)
    if height is None:
        height = fit_height(image, width)
    check_dimensions(width, height)
    rgb = np.asarray(resize_to_cells(to_rgb(image), width, height, config), dtype=np.uint8)
    gray = apply_adjustments(to_grayscale(rgb), config.brightness, config.contrast, config.gamma)
    levels, has_level = sample_colours(np.stack((gray,) * 3, axis=-1))

    intensities = np.zeros((height, width))
    rows, cols = has_level.shape
    intensities[:rows, :cols] = np.where(has_level, coverage(levels[..., 0]), 0.0)
    return density.render(intensities)


def frames_from_image(
    source: Source,
    width: int,
    height: int,
    config: RenderConfig | None = None,
) -> Iterator[tuple[DotGrid, int | None]]:
    """Yield ``(grid, duration_ms)`` for every frame of a (possibly animated) source."""
    config = config or RenderConfig()
    check_dimensions(width, height)
    image = load_image(source)
    frames = ImageSequence.Iterator(image)
    index = 0
    while True:
        try:
            frame = next(frames)
            frame.load()
        except StopIteration:
            return
        except _DECODE_ERRORS as exc:
            raise SourceUnavailable(f"Cannot decode frame {index}: {exc}") from exc
        yield image_to_grid(frame.copy(), width, height, config), frame.info.get("duration")
        index += 1
