import logging

import numpy as np
from PIL import Image

from dotpic.config import BRIGHTNESS_RANGE, CONTRAST_RANGE, GAMMA_RANGE
from dotpic.errors import InvalidDimension, UnsupportedConfiguration

logger = logging.getLogger(__name__)

# ITU-R BT.709 luma weights
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)


def to_grayscale(image: Image.Image | np.ndarray) -> np.ndarray:
    """Convert an image to a (height, width) uint8 intensity buffer using BT.709 luma.

    Gray input is returned unchanged (as a copy). Alpha is ignored; callers
    composite transparent sources beforehand.
    """
    arr = np.asarray(image)
    if arr.ndim == 2:
        return arr.astype(np.uint8, copy=True)
    if arr.ndim != 3 or arr.shape[2] < 3:
        raise InvalidDimension(0, 0, f"cannot take luma of an array shaped {arr.shape}")
    rgb = arr[:, :, :3].astype(np.float64)
    luma = rgb[:, :, 0] * LUMA_WEIGHTS[0] + rgb[:, :, 1] * LUMA_WEIGHTS[1] + rgb[:, :, 2] * LUMA_WEIGHTS[2]
    return np.clip(np.rint(luma), 0, 255).astype(np.uint8)


def _check_factor(name: str, value: float, bounds: tuple[float, float]) -> None:
    lo, hi = bounds
    if not lo <= value <= hi:
        raise UnsupportedConfiguration(f"{name} must be within {lo}-{hi}, got {value}")


def _to_uint8(values: np.ndarray) -> np.ndarray:
    # Truncate rather than round so identity factors are exact
    return np.clip(values, 0.0, 255.0).astype(np.uint8)


def adjust_brightness(gray: np.ndarray, factor: float) -> np.ndarray:
    _check_factor("brightness", factor, BRIGHTNESS_RANGE)
    return _to_uint8(gray.astype(np.float64) * factor)


def adjust_contrast(gray: np.ndarray, factor: float) -> np.ndarray:
    _check_factor("contrast", factor, CONTRAST_RANGE)
    return _to_uint8((gray.astype(np.float64) - 128.0) * factor + 128.0)


def adjust_gamma(gray: np.ndarray, gamma: float) -> np.ndarray:
    _check_factor("gamma", gamma, GAMMA_RANGE)
    return _to_uint8(np.power(gray.astype(np.float64) / 255.0, gamma) * 255.0)


def apply_adjustments(gray: np.ndarray, brightness: float = 1.0, contrast: float = 1.0, gamma: float = 1.0) -> np.ndarray:
    """Apply brightness, then contrast, then gamma. Identity values are skipped."""
    if brightness != 1.0:
        gray = adjust_brightness(gray, brightness)
    if contrast != 1.0:
        gray = adjust_contrast(gray, contrast)
    if gamma != 1.0:
        gray = adjust_gamma(gray, gamma)
    return gray


def histogram(gray: np.ndarray) -> np.ndarray:
    """256-bin intensity histogram."""
    return np.bincount(np.asarray(gray, dtype=np.uint8).ravel(), minlength=256)


def otsu_threshold(hist: np.ndarray) -> int:
    """Threshold maximising between-class variance ``w0 * w1 * (mu0 - mu1) ** 2``.

    ``hist`` is a 256-bin histogram; class 0 holds intensities ``<= t``. The
    lowest ``t`` wins ties, and a histogram with a single populated bin (or
    none) yields 0.
    """
    hist = np.asarray(hist, dtype=np.float64)
    if hist.shape != (256,):
        raise InvalidDimension(hist.size, 1, "histogram must have 256 bins")
    total = hist.sum()
    sum_total = float(np.dot(np.arange(256), hist))

    best_threshold = 0
    best_variance = 0.0
    weight_bg = 0.0
    sum_bg = 0.0
    for t in range(256):
        count = hist[t]
        weight_bg += count
        if weight_bg == 0:
            continue
        weight_fg = total - weight_bg
        if weight_fg == 0:
            break
        sum_bg += t * count
        mean_bg = sum_bg / weight_bg
        mean_fg = (sum_total - sum_bg) / weight_fg
        variance = weight_bg * weight_fg * (mean_bg - mean_fg) ** 2
        if variance > best_variance:
            best_variance = variance
            best_threshold = t

    logger.debug("Otsu threshold %d", best_threshold)
    return best_threshold


def apply_threshold(gray: np.ndarray, threshold: int) -> np.ndarray:
    """Binary bitmap where ``True`` marks ink: pixels at or below ``threshold``."""
    return np.asarray(gray) <= threshold
