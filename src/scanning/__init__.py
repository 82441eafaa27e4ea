"""
Live scanning and scan history.
"""

from src.scanning.history import ScanHistory
from src.scanning.session import ScanSession, ScanState, create_camera_session

__all__ = ["ScanHistory", "ScanSession", "ScanState", "create_camera_session"]
