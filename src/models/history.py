"""
Scan history entries kept by the host application.
"""

from datetime import datetime

from pydantic import Field

from src.models.base import ScanBaseModel, utc_now
from src.models.detection import DetectionMethod


class ScanHistoryEntry(ScanBaseModel):
    """One accepted code in the scan history."""

    code: str
    method: DetectionMethod | None = None
    name: str | None = Field(None, description="Product name given by the operator")
    scanned_at: datetime = Field(default_factory=utc_now)
