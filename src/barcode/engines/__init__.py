"""
Barcode decoding engines.
"""

from src.barcode.engines.base import Decoder
from src.barcode.engines.opencv import OpenCVDecoder
from src.barcode.engines.zbar import ZBarDecoder

__all__ = ["Decoder", "OpenCVDecoder", "ZBarDecoder"]
