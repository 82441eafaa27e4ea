"""
Contrast preprocessing for the heuristic decoder.
"""

import numpy as np

from src.acquisition.buffer import PixelBuffer

LOW_PERCENTILE = 0.02
HIGH_PERCENTILE = 0.98


def rounded_luminance(buffer: PixelBuffer) -> np.ndarray:
    """Luminance rounded half-up to integer bins 0..255."""
    return np.clip(np.floor(buffer.luminance() + 0.5), 0, 255).astype(np.int64)


def percentile_bounds(gray: np.ndarray) -> tuple[int, int]:
    """
    Find the luminance bins holding the 2nd and 98th percentiles.

    The low bound is the first bin whose cumulative count exceeds 2% of all
    pixels, the high bound the first exceeding 98%. Empty inputs keep the
    full 0..255 range.
    """
    total = gray.size
    if total == 0:
        return 0, 255

    cumulative = np.cumsum(np.bincount(gray.ravel(), minlength=256))
    low = int(np.argmax(cumulative > total * LOW_PERCENTILE))
    high = int(np.argmax(cumulative > total * HIGH_PERCENTILE))
    return low, high


def stretch_contrast(buffer: PixelBuffer) -> PixelBuffer:
    """
    Linearly stretch luminance so the 2nd percentile maps to 0 and the 98th
    to 255, clamping outside that range.

    Returns a new grayscale-equivalent RGBA buffer with the input's alpha;
    the input buffer is not modified.
    """
    gray = rounded_luminance(buffer)
    low, high = percentile_bounds(gray)
    span = (high - low) or 1

    stretched = np.clip((gray - low) * 255.0 / span, 0, 255)
    return PixelBuffer.from_gray(np.rint(stretched).astype(np.uint8), alpha=buffer.data[..., 3])
