"""
In-memory scan history kept next to the scanner.
"""

import structlog

from src.barcode.validator import strip_leading_zero
from src.models.detection import DetectionMethod
from src.models.history import ScanHistoryEntry

logger = structlog.get_logger(__name__)


class ScanHistory:
    """
    Ordered list of accepted codes, newest first, one entry per code.

    Adding a code that is already present moves it to the front and keeps
    the name the operator gave it.
    """

    def __init__(self, max_entries: int = 200):
        self.max_entries = max_entries
        self._entries: list[ScanHistoryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, code: str) -> bool:
        return self._find(code) is not None

    @property
    def entries(self) -> list[ScanHistoryEntry]:
        return list(self._entries)

    def add(self, code: str, method: DetectionMethod | str | None = None) -> ScanHistoryEntry:
        """Record an accepted code."""
        if isinstance(method, str):
            method = DetectionMethod(method)

        existing = self._find(code)
        name = existing.name if existing else None
        if existing:
            self._entries.remove(existing)

        entry = ScanHistoryEntry(code=code, method=method, name=name)
        self._entries.insert(0, entry)
        del self._entries[self.max_entries :]
        return entry

    def remove(self, code: str) -> bool:
        """Delete a code; returns False if it was not recorded."""
        entry = self._find(code)
        if entry is None:
            return False
        self._entries.remove(entry)
        return True

    def rename(self, code: str, name: str) -> ScanHistoryEntry:
        """Attach a product name to a recorded code."""
        entry = self._require(code)
        renamed = entry.model_copy(update={"name": name.strip() or None})
        self._replace(entry, renamed)
        return renamed

    def strip_leading_zero(self, code: str) -> ScanHistoryEntry:
        """Replace a recorded code with its leading zero removed."""
        entry = self._require(code)
        new_code = strip_leading_zero(code)
        if new_code == code:
            return entry

        duplicate = self._find(new_code)
        if duplicate is not None:
            self._entries.remove(duplicate)

        updated = entry.model_copy(update={"code": new_code})
        self._replace(entry, updated)
        logger.info("Removed leading zero", old_code=code, new_code=new_code)
        return updated

    def _find(self, code: str) -> ScanHistoryEntry | None:
        return next((e for e in self._entries if e.code == code), None)

    def _require(self, code: str) -> ScanHistoryEntry:
        entry = self._find(code)
        if entry is None:
            raise KeyError(code)
        return entry

    def _replace(self, old: ScanHistoryEntry, new: ScanHistoryEntry) -> None:
        self._entries[self._entries.index(old)] = new
