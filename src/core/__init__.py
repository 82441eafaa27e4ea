"""
Core error types shared by the scanning pipeline.
"""

from src.core.exceptions import (
    AcquisitionError,
    CameraError,
    EngineError,
    ScanError,
    ValidationRejected,
)

__all__ = [
    "ScanError",
    "AcquisitionError",
    "EngineError",
    "ValidationRejected",
    "CameraError",
]
