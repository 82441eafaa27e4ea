"""
Fallback decoding engine using OpenCV's barcode and QR detectors.
"""

import asyncio

import cv2
import numpy as np
import structlog

from src.acquisition.buffer import PixelBuffer
from src.barcode.engines.base import Decoder
from src.core.exceptions import EngineError
from src.models.detection import DetectionMethod

logger = structlog.get_logger(__name__)


def _barcode_detector():
    """Create a 1D barcode detector for whichever cv2 build is installed."""
    if hasattr(cv2, "barcode") and hasattr(cv2.barcode, "BarcodeDetector"):
        return cv2.barcode.BarcodeDetector()
    # opencv-contrib builds before 4.8
    if hasattr(cv2, "barcode_BarcodeDetector"):
        return cv2.barcode_BarcodeDetector()
    return None


def _barcode_strings(result) -> list[str]:
    """Normalize the tuple shapes returned by the different cv2 versions."""
    ok, infos = False, []
    if isinstance(result, tuple):
        if len(result) == 4:
            ok, infos = result[0], result[1]
        elif len(result) == 3:
            infos = result[0]
            ok = bool(infos)
    if isinstance(infos, str):
        infos = [infos]
    if ok and isinstance(infos, (list, tuple)):
        return [s for s in infos if s]
    return []


class OpenCVDecoder(Decoder):
    """
    Classic computer-vision decoder.

    The buffer is re-encoded as a PNG image source and decoded back before
    detection, so this engine sees the same input an image file would give
    it. The first decoded string wins; 1D barcodes are tried before QR.
    """

    name = "opencv"
    method = DetectionMethod.FALLBACK_OPENCV

    def __init__(self, try_qr: bool = True):
        self.try_qr = try_qr

    async def decode(self, buffer: PixelBuffer) -> list[str]:
        if buffer.is_empty:
            return []
        return await asyncio.to_thread(self._decode_sync, buffer)

    def _decode_sync(self, buffer: PixelBuffer) -> list[str]:
        image = self._as_image_source(buffer)

        detector = _barcode_detector()
        if detector is None and not self.try_qr:
            raise EngineError(self.name, "cv2 build has no barcode detector")

        if detector is not None:
            try:
                if hasattr(detector, "detectAndDecodeMulti"):
                    codes = _barcode_strings(detector.detectAndDecodeMulti(image))
                else:
                    codes = _barcode_strings(detector.detectAndDecode(image))
            except cv2.error as e:
                raise EngineError(self.name, str(e)) from e
            if codes:
                return codes[:1]

        if self.try_qr:
            try:
                text, _points, _straight = cv2.QRCodeDetector().detectAndDecode(image)
            except cv2.error as e:
                raise EngineError(self.name, str(e)) from e
            if text:
                return [text]

        return []

    def _as_image_source(self, buffer: PixelBuffer) -> np.ndarray:
        bgr = cv2.cvtColor(np.ascontiguousarray(buffer.data), cv2.COLOR_RGBA2BGR)
        ok, encoded = cv2.imencode(".png", bgr)
        if not ok:
            raise EngineError(self.name, "could not re-encode frame as PNG")
        image = cv2.imdecode(encoded, cv2.IMREAD_COLOR)
        if image is None:
            raise EngineError(self.name, "could not decode re-encoded frame")
        return image
