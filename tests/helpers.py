"""
Test helpers: synthetic barcode images, fake decoders and frame sources.
"""

import numpy as np

from src.acquisition import PixelBuffer
from src.barcode.engines import Decoder
from src.core.exceptions import CameraError

BARCODE_DIGITS = "710243171417"

# Dark pixels per 40-pixel segment for each digit the heuristic can emit
SEGMENT_WIDTH = 40
DARK_PIXELS = {"1": 32, "0": 4, "7": 24, "4": 20, "3": 16, "2": 13}


def guarded_row(digits: str, margin: int = 6) -> str:
    """
    Build one pixel row ('1' = dark) that the basic pattern decoder reads
    back as ``digits``.

    Every run is at least two pixels wide except the single light pixel in
    each guard, so the 3x3 smoothing does not change the binarization.
    """
    segments = "".join(
        "1" * DARK_PIXELS[d] + "0" * (SEGMENT_WIDTH - DARK_PIXELS[d]) for d in digits
    )
    left_guard = "11" + "0" + "1"
    # The first pixel after the segments is the one trailing payload bit
    right_guard = "1" + "1" + "0" + "11"
    return "0" * margin + left_guard + segments + right_guard + "0" * margin


def row_to_buffer(row: str, height: int = 20) -> PixelBuffer:
    """Repeat a pixel row vertically into an RGBA buffer (bars span the height)."""
    values = np.array([0 if c == "1" else 255 for c in row], dtype=np.uint8)
    gray = np.tile(values, (height, 1))
    return PixelBuffer.from_gray(gray)


class FakeDecoder(Decoder):
    """Decoder returning canned results and counting calls."""

    def __init__(self, name, method, results=None, error=None, sequence=None):
        self.name = name
        self.method = method
        self.results = list(results or [])
        self.error = error
        # Per-call results, consumed before falling back to ``results``
        self.sequence = list(sequence or [])
        self.calls = 0

    async def decode(self, buffer: PixelBuffer) -> list[str]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.sequence:
            return list(self.sequence.pop(0))
        return list(self.results)


class FakeFrameSource:
    """In-memory frame source yielding BGR frames, with readiness control."""

    def __init__(self, frames=None, ready=True, fail_open=False):
        self.frames = list(frames or [])
        self.ready = ready
        self.fail_open = fail_open
        self.opened = False
        self.open_calls = 0
        self.release_calls = 0
        self.grab_calls = 0

    @property
    def is_opened(self) -> bool:
        return self.opened

    def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise CameraError("Permission denied")
        self.opened = True

    def grab(self) -> bool:
        self.grab_calls += 1
        return self.ready and self.opened

    def retrieve(self):
        if not self.frames:
            return np.full((8, 8, 3), 255, dtype=np.uint8)
        if len(self.frames) == 1:
            return self.frames[0]
        return self.frames.pop(0)

    def release(self) -> None:
        self.release_calls += 1
        self.opened = False


# EAN-13 left-hand odd parity (L) codes; R is the complement of L and
# G is R reversed
EAN_L_CODES = {
    "0": "0001101",
    "1": "0011001",
    "2": "0010011",
    "3": "0111101",
    "4": "0100011",
    "5": "0110001",
    "6": "0101111",
    "7": "0111011",
    "8": "0110111",
    "9": "0001011",
}
EAN_PARITY = {
    "0": "LLLLLL",
    "1": "LLGLGG",
    "2": "LLGGLG",
    "3": "LLGGGL",
    "4": "LGLLGG",
    "5": "LGGLLG",
    "6": "LGGGLL",
    "7": "LGLGLG",
    "8": "LGLGGL",
    "9": "LGGLGL",
}


def _r_code(digit: str) -> str:
    return "".join("1" if bit == "0" else "0" for bit in EAN_L_CODES[digit])


def ean13_modules(code: str) -> str:
    """Return the 95-module bar pattern of an EAN-13 code ('1' = bar)."""
    first, left, right = code[0], code[1:7], code[7:]
    modules = "101"
    for digit, parity in zip(left, EAN_PARITY[first]):
        modules += EAN_L_CODES[digit] if parity == "L" else _r_code(digit)[::-1]
    modules += "01010"
    for digit in right:
        modules += _r_code(digit)
    modules += "101"
    return modules


def ean13_png(code: str, module_px: int = 4, height: int = 120, quiet: int = 11) -> bytes:
    """Render a clean EAN-13 barcode as PNG bytes."""
    from io import BytesIO

    from PIL import Image

    modules = "0" * quiet + ean13_modules(code) + "0" * quiet
    row = np.repeat(
        np.array([0 if m == "1" else 255 for m in modules], dtype=np.uint8), module_px
    )
    gray = np.tile(row, (height, 1))
    out = BytesIO()
    Image.fromarray(gray).save(out, format="PNG")
    return out.getvalue()
