"""
Detection models shared by the orchestrator, the live-scan session and the host.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field

from src.models.base import ScanBaseModel, utc_now


class DetectionMethod(str, Enum):
    """Pipeline stage that produced a detection."""

    PRIMARY_ZBAR = "primary_zbar"
    FALLBACK_OPENCV = "fallback_opencv"
    HEURISTIC_HORIZONTAL = "heuristic_horizontal"
    HEURISTIC_VERTICAL = "heuristic_vertical"

    @property
    def is_heuristic(self) -> bool:
        """Heuristic results are best guesses, not confirmed decodes."""
        return self in (DetectionMethod.HEURISTIC_HORIZONTAL, DetectionMethod.HEURISTIC_VERTICAL)


class BarcodeSymbology(str, Enum):
    """Supported barcode symbologies."""

    EAN_13 = "EAN-13"
    EAN_8 = "EAN-8"
    UPC_A = "UPC-A"
    UPC_E = "UPC-E"
    UNKNOWN = "UNKNOWN"


class DetectionCandidate(ScanBaseModel):
    """A code string produced by one pipeline stage."""

    code: str = Field(..., description="The decoded value")
    method: DetectionMethod = Field(..., description="Stage that produced the code")


class DetectionOutcome(ScanBaseModel):
    """
    Result of one detection attempt as surfaced to the host.

    Exactly one of three shapes:
    - detected: ``code`` and ``method`` are set
    - nothing found: ``code`` is None and ``message`` explains it
    - acquisition failure: ``error`` is set (the error channel)
    """

    code: str | None = None
    method: DetectionMethod | None = None
    message: str | None = None
    error: str | None = None

    # Product-code annotations; never affect acceptance
    symbology: BarcodeSymbology = BarcodeSymbology.UNKNOWN
    checksum_valid: bool = False
    normalized_code: str | None = None

    detected_at: datetime = Field(default_factory=utc_now)

    @property
    def found(self) -> bool:
        return self.code is not None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def low_confidence(self) -> bool:
        """True when the code is a heuristic best guess."""
        return self.method is not None and self.method.is_heuristic


NO_CODE_MESSAGE = "No barcode detected in the image."
