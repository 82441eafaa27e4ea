"""
Tests for detection and history models.
"""

import pytest
from pydantic import ValidationError

from src.core.exceptions import AcquisitionError, EngineError, ValidationRejected
from src.models import (
    BarcodeSymbology,
    DetectionCandidate,
    DetectionMethod,
    DetectionOutcome,
    ScanHistoryEntry,
)


class TestDetectionMethod:
    """Tests for DetectionMethod."""

    def test_wire_values(self):
        assert DetectionMethod.PRIMARY_ZBAR.value == "primary_zbar"
        assert DetectionMethod.FALLBACK_OPENCV.value == "fallback_opencv"
        assert DetectionMethod("heuristic_vertical") == DetectionMethod.HEURISTIC_VERTICAL

    def test_is_heuristic(self):
        assert DetectionMethod.HEURISTIC_HORIZONTAL.is_heuristic
        assert DetectionMethod.HEURISTIC_VERTICAL.is_heuristic
        assert not DetectionMethod.PRIMARY_ZBAR.is_heuristic
        assert not DetectionMethod.FALLBACK_OPENCV.is_heuristic


class TestDetectionOutcome:
    """Tests for DetectionOutcome."""

    def test_detected(self):
        outcome = DetectionOutcome(code="4006381333931", method=DetectionMethod.PRIMARY_ZBAR)
        assert outcome.found
        assert not outcome.is_error
        assert not outcome.low_confidence
        assert outcome.detected_at.tzinfo is not None

    def test_nothing_found(self):
        outcome = DetectionOutcome(message="No barcode detected in the image.")
        assert not outcome.found
        assert not outcome.low_confidence
        assert outcome.symbology == BarcodeSymbology.UNKNOWN

    def test_to_dict(self):
        outcome = DetectionOutcome(code="96385074", method=DetectionMethod.FALLBACK_OPENCV)
        data = outcome.to_dict()
        assert data["code"] == "96385074"
        assert data["method"] == "fallback_opencv"
        assert "error" not in data
        assert isinstance(data["detected_at"], str)

    def test_frozen(self):
        candidate = DetectionCandidate(code="96385074", method=DetectionMethod.PRIMARY_ZBAR)
        with pytest.raises(ValidationError):
            candidate.code = "other"


class TestScanHistoryEntry:
    """Tests for ScanHistoryEntry."""

    def test_defaults(self):
        entry = ScanHistoryEntry(code="96385074")
        assert entry.name is None
        assert entry.method is None
        assert entry.scanned_at is not None


class TestExceptions:
    """Tests for the error taxonomy."""

    def test_to_dict(self):
        error = AcquisitionError("Image data is empty", {"size": 0})
        assert error.to_dict() == {
            "error": "AcquisitionError",
            "message": "Image data is empty",
            "details": {"size": 0},
        }

    def test_engine_error_names_engine(self):
        error = EngineError("zbar", "library missing")
        assert error.engine == "zbar"
        assert str(error) == "zbar: library missing"

    def test_validation_rejected(self):
        error = ValidationRejected("1234", "shorter than 8 characters")
        assert error.code == "1234"
        assert error.details == {"reason": "shorter than 8 characters"}
