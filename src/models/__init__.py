"""
Pydantic models for detections and scan history.
"""

from src.models.detection import (
    NO_CODE_MESSAGE,
    BarcodeSymbology,
    DetectionCandidate,
    DetectionMethod,
    DetectionOutcome,
)
from src.models.history import ScanHistoryEntry

__all__ = [
    # Detection
    "BarcodeSymbology",
    "DetectionCandidate",
    "DetectionMethod",
    "DetectionOutcome",
    "NO_CODE_MESSAGE",
    # History
    "ScanHistoryEntry",
]
