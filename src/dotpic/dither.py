import logging
import math

import numpy as np

from dotpic.config import BAYER_SIZES, Atkinson, Auto, Bayer, DitherMethod, FloydSteinberg, Manual, NoDither, ThresholdMode
from dotpic.errors import InvalidDimension, UnsupportedConfiguration
from dotpic.threshold import apply_threshold, histogram, otsu_threshold

logger = logging.getLogger(__name__)

# Error diffusion quantises to 0 or 255; values below 127 become ink, so 127 itself is white.
DITHER_MIDPOINT = 127

# (dx, dy, weight) for a left-to-right row; dx is mirrored on right-to-left rows.
FLOYD_STEINBERG_KERNEL = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)

# Six neighbours at 1/8 each; the remaining 2/8 of the error is dropped.
ATKINSON_KERNEL = (
    (1, 0, 1 / 8),
    (2, 0, 1 / 8),
    (-1, 1, 1 / 8),
    (0, 1, 1 / 8),
    (1, 1, 1 / 8),
    (0, 2, 1 / 8),
)

# Margin around the error buffer wide enough for every kernel offset
_PAD = 2


def _check_shape(gray: np.ndarray) -> None:
    if gray.ndim != 2 or gray.size == 0:
        h, w = gray.shape[:2] if gray.ndim >= 2 else (0, 0)
        raise InvalidDimension(w, h, "cannot dither an empty or non-2D buffer")


def _error_diffusion(gray: np.ndarray, kernel: tuple[tuple[int, int, float], ...]) -> np.ndarray:
    """Serpentine error diffusion of a grayscale buffer into an ink bitmap.

    The error buffer carries a margin on the left, right and bottom; error that
    lands there is discarded with the buffer.
    """
    _check_shape(gray)
    h, w = gray.shape
    buf = np.pad(gray.astype(np.float64), ((0, _PAD), (_PAD, _PAD))).tolist()
    out = [[False] * w for _ in range(h)]

    for y in range(h):
        if y % 2 == 0:
            xs = range(w)
            direction = 1
        else:
            xs = range(w - 1, -1, -1)
            direction = -1
        row = buf[y]
        out_row = out[y]
        for x in xs:
            old = row[x + _PAD]
            new = 0.0 if old < DITHER_MIDPOINT else 255.0
            out_row[x] = new == 0.0
            error = old - new
            if error == 0.0:
                continue
            for dx, dy, weight in kernel:
                buf[y + dy][x + _PAD + dx * direction] += error * weight

    return np.array(out, dtype=bool)


def floyd_steinberg(gray: np.ndarray) -> np.ndarray:
    return _error_diffusion(gray, FLOYD_STEINBERG_KERNEL)


def atkinson(gray: np.ndarray) -> np.ndarray:
    return _error_diffusion(gray, ATKINSON_KERNEL)


def bayer_matrix(size: int) -> np.ndarray:
    """Ordered-dither index matrix of the given power-of-two size, values 0..size**2-1."""
    if size not in BAYER_SIZES:
        raise UnsupportedConfiguration(f"Bayer matrix size must be one of {BAYER_SIZES}, got {size}")
    m = np.zeros((1, 1), dtype=np.int64)
    while m.shape[0] < size:
        m = np.block([[4 * m, 4 * m + 2], [4 * m + 3, 4 * m + 1]])
    return m


def bayer(gray: np.ndarray, size: int = 8) -> np.ndarray:
    _check_shape(gray)
    h, w = gray.shape
    matrix = bayer_matrix(size)
    tiled = np.tile(matrix, (math.ceil(h / size), math.ceil(w / size)))[:h, :w]
    thresholds = (tiled + 0.5) / (size * size)
    return gray.astype(np.float64) / 255.0 <= thresholds


def select_threshold(gray: np.ndarray, mode: ThresholdMode) -> int:
    match mode:
        case Manual(value=value):
            return value
        case Auto():
            return otsu_threshold(histogram(gray))
    raise UnsupportedConfiguration(f"Unsupported threshold mode: {mode!r}")


def binarize(gray: np.ndarray, method: DitherMethod, mode: ThresholdMode) -> np.ndarray:
    """Turn a grayscale buffer into an ink bitmap with the chosen dither or threshold."""
    _check_shape(gray)
    logger.debug("Binarizing %dx%d buffer with %s", gray.shape[1], gray.shape[0], method)
    match method:
        case NoDither():
            return apply_threshold(gray, select_threshold(gray, mode))
        case FloydSteinberg():
            return floyd_steinberg(gray)
        case Atkinson():
            return atkinson(gray)
        case Bayer(size=size):
            return bayer(gray, size)
    raise UnsupportedConfiguration(f"Unsupported dither method: {method!r}")
