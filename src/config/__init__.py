"""
Configuration management for the barcode scanner.
"""

from src.config.logging import configure_logging
from src.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "configure_logging"]
