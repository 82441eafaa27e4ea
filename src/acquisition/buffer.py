"""
Uniform RGBA pixel buffer used by every decoding stage.
"""

from dataclasses import dataclass

import numpy as np

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


@dataclass(frozen=True)
class PixelBuffer:
    """
    Row-major RGBA samples with their dimensions.

    ``data`` has shape ``(height, width, 4)`` and dtype uint8. The buffer keeps
    its own read-only copy, so the caller's array is left writable; stages
    that transform pixels build a new buffer instead.
    """

    width: int
    height: int
    data: np.ndarray

    def __post_init__(self):
        if self.data.shape != (self.height, self.width, 4):
            raise ValueError(
                f"Expected data of shape {(self.height, self.width, 4)}, got {self.data.shape}"
            )
        if self.data.dtype != np.uint8:
            raise ValueError(f"Expected uint8 samples, got {self.data.dtype}")
        data = self.data.copy()
        data.flags.writeable = False
        object.__setattr__(self, "data", data)

    @classmethod
    def from_rgba(cls, rgba: np.ndarray) -> "PixelBuffer":
        """Wrap a copy of an ``(h, w, 4)`` uint8 array."""
        array = np.asarray(rgba, dtype=np.uint8)
        if array.ndim != 3 or array.shape[2] != 4:
            raise ValueError(f"Expected an (h, w, 4) array, got shape {array.shape}")
        height, width = array.shape[:2]
        return cls(width=width, height=height, data=array)

    @classmethod
    def from_gray(cls, gray: np.ndarray, alpha: np.ndarray | None = None) -> "PixelBuffer":
        """Build a grayscale-equivalent RGBA buffer from an ``(h, w)`` array."""
        gray = np.asarray(gray, dtype=np.uint8)
        if gray.ndim != 2:
            raise ValueError(f"Expected an (h, w) array, got shape {gray.shape}")
        height, width = gray.shape
        rgba = np.empty((height, width, 4), dtype=np.uint8)
        rgba[..., 0] = gray
        rgba[..., 1] = gray
        rgba[..., 2] = gray
        rgba[..., 3] = 255 if alpha is None else alpha
        return cls(width=width, height=height, data=rgba)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def luminance(self) -> np.ndarray:
        """Per-pixel luminance ``0.299R + 0.587G + 0.114B`` as float64."""
        return self.data[..., :3].astype(np.float64) @ LUMA_WEIGHTS

    def rotated_90(self) -> "PixelBuffer":
        """
        Rotate a quarter turn clockwise.

        The pixel at ``(x, y)`` lands at column ``height - 1 - y`` of row
        ``x``; width and height are swapped.
        """
        rotated = np.ascontiguousarray(np.rot90(self.data, k=-1))
        return PixelBuffer(width=self.height, height=self.width, data=rotated)
