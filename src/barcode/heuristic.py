"""
Basic pattern decoder.

A dependency-light heuristic used only after both real engines fail. It
samples scanlines across the middle band of the image, binarizes each one
against its own mean luminance, keeps the most common bit string and looks
for EAN/UPC-like guard patterns around a data region. The digits it returns
are a best guess from bar density, not a conformant symbology decode.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum

import numpy as np

from src.acquisition.buffer import LUMA_WEIGHTS, PixelBuffer

# 3x3 Gaussian-like smoothing kernel, normalized by KERNEL_SUM
SMOOTHING_KERNEL = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.float64)
KERNEL_SUM = 16

SCANLINE_COUNT = 15
BAND_START = 0.3
BAND_END = 0.7

GUARD_PATTERN = "101"
MIN_GUARD_SPAN = 30
DIGIT_COUNT = 12
MIN_SEGMENT_BITS = 3

# Bar-density thresholds, checked in this order. Empirical values.
DENSITY_HIGH = 0.70  # -> "1"
DENSITY_LOW = 0.30  # -> "0"
DENSITY_7 = 0.55
DENSITY_4 = 0.45
DENSITY_3 = 0.35  # anything left -> "2"

DIAGNOSTIC_BITS = 64

DIGITS_PREFIX = "BASIC_EAN_DIGITS_"
VERTICAL_DIGITS_PREFIX = "BASIC_EAN_DIGITS_VERTICAL_"
DIAGNOSTIC_PREFIX = "BASIC_BIN_"


class Orientation(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class BasicPatternResult:
    """
    Outcome of the basic pattern decoder.

    ``text`` is always set: the tagged digit guess, or a truncated raw bit
    string for diagnostics. ``digits`` and ``orientation`` are only set when
    a guard pattern was found.
    """

    text: str
    digits: str | None = None
    orientation: Orientation | None = None

    @property
    def matched(self) -> bool:
        return self.digits is not None


def smooth(data: np.ndarray) -> np.ndarray:
    """
    Apply the 3x3 smoothing kernel to the RGB channels.

    Alpha and the 1-pixel border are copied from the input rather than left
    zeroed, so the border columns keep their real luminance in the first
    and last bit of every scanline. Results are rounded to the nearest
    integer the way a clamped byte array stores them.
    """
    out = data.copy()
    height, width = data.shape[:2]
    if height < 3 or width < 3:
        return out

    rgb = data[..., :3].astype(np.float64)
    acc = np.zeros((height - 2, width - 2, 3), dtype=np.float64)
    for ky in range(3):
        for kx in range(3):
            acc += SMOOTHING_KERNEL[ky, kx] * rgb[ky : ky + height - 2, kx : kx + width - 2]

    out[1:-1, 1:-1, :3] = np.clip(np.rint(acc / KERNEL_SUM), 0, 255).astype(np.uint8)
    return out


def scanline_rows(height: int) -> list[int]:
    """Rows of the scanlines sampled across the 30%-70% band."""
    start = int(np.floor(height * BAND_START))
    end = int(np.floor(height * BAND_END))
    step = max(1, (end - start) // SCANLINE_COUNT)
    rows = (start + i * step for i in range(SCANLINE_COUNT))
    return [y for y in rows if y < height]


def binarize_line(luma_row: np.ndarray) -> str:
    """'1' for pixels darker than the row's mean luminance, else '0'."""
    if luma_row.size == 0:
        return ""
    threshold = luma_row.mean()
    return "".join(np.where(luma_row < threshold, "1", "0"))


def representative_line(data: np.ndarray) -> str:
    """
    Binarize each scanline and return the most frequent bit string.

    Ties go to the string seen first.
    """
    height = data.shape[0]
    rows = scanline_rows(height)
    if not rows:
        return ""

    luma = data[rows, :, :3].astype(np.float64) @ LUMA_WEIGHTS
    lines = [binarize_line(row) for row in luma]
    # Counter preserves first-insertion order, and max() keeps the first
    # maximal element
    counts = Counter(lines)
    return max(counts, key=counts.__getitem__)


def segment_digit(ratio: float) -> str:
    """Map the share of dark bits in a segment to a digit."""
    if ratio > DENSITY_HIGH:
        return "1"
    if ratio < DENSITY_LOW:
        return "0"
    if ratio > DENSITY_7:
        return "7"
    if ratio > DENSITY_4:
        return "4"
    if ratio > DENSITY_3:
        return "3"
    return "2"


def decode_guarded_digits(bits: str) -> str | None:
    """
    Decode 12 digits between the first and last guard pattern.

    Returns None when no pair of guards at least MIN_GUARD_SPAN bits apart
    exists or the payload is too short to split into 12 segments.
    """
    left = bits.find(GUARD_PATTERN)
    right = bits.rfind(GUARD_PATTERN)
    if left == -1 or right <= left + MIN_GUARD_SPAN:
        return None

    payload = bits[left + len(GUARD_PATTERN) : right]
    seg = len(payload) // DIGIT_COUNT
    if seg < MIN_SEGMENT_BITS:
        return None

    digits = []
    for i in range(DIGIT_COUNT):
        chunk = payload[i * seg : (i + 1) * seg]
        digits.append(segment_digit(chunk.count("1") / seg))
    return "".join(digits)


def decode_basic_pattern(buffer: PixelBuffer) -> BasicPatternResult:
    """
    Run the heuristic decoder on a buffer.

    The horizontal pass runs on the smoothed image. When it finds no guard
    pattern, the unsmoothed image is rotated a quarter turn and scanned
    again. When neither pass matches, the result carries the first 64 bits
    of the last line analyzed (the vertical one) for debugging.
    """
    smoothed = smooth(buffer.data)
    horizontal_bits = representative_line(smoothed)
    digits = decode_guarded_digits(horizontal_bits)
    if digits:
        return BasicPatternResult(
            text=f"{DIGITS_PREFIX}{digits}",
            digits=digits,
            orientation=Orientation.HORIZONTAL,
        )

    rotated = buffer.rotated_90()
    vertical_bits = representative_line(rotated.data)
    digits = decode_guarded_digits(vertical_bits)
    if digits:
        return BasicPatternResult(
            text=f"{VERTICAL_DIGITS_PREFIX}{digits}",
            digits=digits,
            orientation=Orientation.VERTICAL,
        )

    return BasicPatternResult(text=f"{DIAGNOSTIC_PREFIX}{vertical_bits[:DIAGNOSTIC_BITS]}...")
