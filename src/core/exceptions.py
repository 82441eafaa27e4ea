"""
Scanner exception taxonomy.

Recovery policy:
    AcquisitionError   - bad or corrupt image source; aborts one attempt only
    EngineError        - a decoding engine failed; the stage yields nothing
    ValidationRejected - a decoded string failed length/pattern checks;
                         treated exactly like "no result"
    CameraError        - stream acquisition or runtime failure; terminal for
                         the current live-scan session
"""

from typing import Any


class ScanError(Exception):
    """Base class for every scanner error."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dict for logging or host callbacks."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class AcquisitionError(ScanError):
    """The input could not be turned into a pixel buffer."""


class EngineError(ScanError):
    """A decoding engine raised or returned malformed data."""

    def __init__(self, engine: str, message: str, details: dict[str, Any] | None = None):
        self.engine = engine
        super().__init__(f"{engine}: {message}", details)


class ValidationRejected(ScanError):
    """A decoded string exists but is outside the accepted policy."""

    def __init__(self, code: str, reason: str):
        self.code = code
        self.reason = reason
        super().__init__(f"Rejected code {code!r}: {reason}", {"reason": reason})


class CameraError(ScanError):
    """The camera stream could not be opened or failed while running."""
