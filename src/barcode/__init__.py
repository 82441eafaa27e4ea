"""
Barcode detection pipeline.
"""

from src.barcode.engines import Decoder, OpenCVDecoder, ZBarDecoder
from src.barcode.heuristic import BasicPatternResult, Orientation, decode_basic_pattern
from src.barcode.orchestrator import DetectionOrchestrator, annotate, build_orchestrator
from src.barcode.preprocess import stretch_contrast
from src.barcode.service import acquire, scan_image
from src.barcode.validator import (
    ValidationPolicy,
    is_valid_barcode,
    normalize_barcode,
    strip_leading_zero,
    validate_ean8_checksum,
    validate_ean13_checksum,
    validate_upc_checksum,
)

__all__ = [
    "Decoder",
    "OpenCVDecoder",
    "ZBarDecoder",
    "BasicPatternResult",
    "Orientation",
    "decode_basic_pattern",
    "DetectionOrchestrator",
    "annotate",
    "build_orchestrator",
    "stretch_contrast",
    "acquire",
    "scan_image",
    "ValidationPolicy",
    "is_valid_barcode",
    "normalize_barcode",
    "strip_leading_zero",
    "validate_ean13_checksum",
    "validate_ean8_checksum",
    "validate_upc_checksum",
]
