"""
Live video acquisition.

A FrameSource is anything that can report whether a full frame is buffered
and hand that frame over. OpenCVCamera is the production implementation on
top of ``cv2.VideoCapture``; tests substitute in-memory sources.
"""

from typing import Protocol

import cv2
import numpy as np
import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.acquisition.buffer import PixelBuffer
from src.core.exceptions import CameraError

logger = structlog.get_logger(__name__)


class FrameSource(Protocol):
    """Camera-like source of BGR frames."""

    @property
    def is_opened(self) -> bool: ...

    def open(self) -> None: ...

    def grab(self) -> bool:
        """Return True when a complete frame is buffered and ready."""
        ...

    def retrieve(self) -> np.ndarray | None: ...

    def release(self) -> None: ...


class OpenCVCamera:
    """
    Camera stream backed by ``cv2.VideoCapture``.

    Opening is retried with exponential backoff because freshly attached or
    busy devices often fail the first open.
    """

    def __init__(
        self,
        index: int = 0,
        width: int = 1280,
        height: int = 720,
        open_retries: int = 3,
    ):
        self.index = index
        self.width = width
        self.height = height
        self.open_retries = open_retries
        self._cap: cv2.VideoCapture | None = None

    @property
    def is_opened(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def open(self) -> None:
        """
        Acquire the camera stream.

        Raises:
            CameraError: If the device cannot be opened after all retries
        """
        for attempt in Retrying(
            stop=stop_after_attempt(self.open_retries),
            wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
            retry=retry_if_exception_type(CameraError),
            reraise=True,
        ):
            with attempt:
                self._open_once()

        logger.info("Camera opened", index=self.index, width=self.width, height=self.height)

    def _open_once(self) -> None:
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Could not open camera {self.index}", {"index": self.index})
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap = cap

    def grab(self) -> bool:
        if self._cap is None:
            return False
        return bool(self._cap.grab())

    def retrieve(self) -> np.ndarray | None:
        if self._cap is None:
            return None
        ok, frame = self._cap.retrieve()
        return frame if ok else None

    def release(self) -> None:
        """Release the device. Safe to call more than once."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera released", index=self.index)


def frame_to_buffer(frame: np.ndarray) -> PixelBuffer:
    """Convert an OpenCV BGR, BGRA or grayscale frame to RGBA."""
    if frame.ndim == 2:
        rgba = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
    elif frame.shape[2] == 4:
        rgba = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
    else:
        rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
    return PixelBuffer.from_rgba(rgba)


def capture_frame(source: FrameSource) -> PixelBuffer | None:
    """
    Sample the current frame of a live source.

    Returns None, without error, while the source has no complete frame
    buffered or reports zero dimensions.

    Raises:
        CameraError: If the stream is no longer open
    """
    if not source.is_opened:
        raise CameraError("Camera stream is not open")

    if not source.grab():
        return None

    frame = source.retrieve()
    if frame is None or frame.size == 0 or frame.shape[0] == 0 or frame.shape[1] == 0:
        return None

    return frame_to_buffer(frame)
