"""
Primary decoding engine using ZBar via pyzbar.
"""

import asyncio
from collections.abc import Sequence

import structlog
from PIL import Image

from src.acquisition.buffer import PixelBuffer
from src.barcode.engines.base import Decoder
from src.core.exceptions import EngineError
from src.models.detection import DetectionMethod

logger = structlog.get_logger(__name__)


class ZBarDecoder(Decoder):
    """
    ZBar decoder over a grayscale copy of the buffer.

    ZBar has the lowest false-positive rate of the available engines, so it
    always runs first. By default it scans every symbology ZBar supports,
    QR codes included; pass ``pyzbar.pyzbar.ZBarSymbol`` values to narrow it.

    pyzbar is loaded on first use because it needs the native zbar library;
    a missing library surfaces as an EngineError for this stage only.
    """

    name = "zbar"
    method = DetectionMethod.PRIMARY_ZBAR

    def __init__(self, symbols: Sequence | None = None):
        self.symbols = list(symbols) if symbols else None

    async def decode(self, buffer: PixelBuffer) -> list[str]:
        if buffer.is_empty:
            return []
        return await asyncio.to_thread(self._decode_sync, buffer)

    def _decode_sync(self, buffer: PixelBuffer) -> list[str]:
        try:
            from pyzbar import pyzbar
        except ImportError as e:
            raise EngineError(self.name, f"zbar is not available: {e}") from e

        image = Image.fromarray(buffer.data.copy()).convert("L")

        try:
            decoded_objects = pyzbar.decode(image, symbols=self.symbols)
        except Exception as e:
            raise EngineError(self.name, str(e)) from e

        codes = []
        for obj in decoded_objects:
            try:
                codes.append(obj.data.decode("utf-8"))
            except UnicodeDecodeError:
                logger.debug("Skipping non UTF-8 symbol", engine=self.name, type=obj.type)
        return codes
