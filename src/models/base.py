"""
Common base models and utilities.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict


class ScanBaseModel(BaseModel):
    """Base model for values handed to the host application."""

    model_config = ConfigDict(
        frozen=True,
        use_enum_values=False,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert model to a JSON-friendly dict."""
        return self.model_dump(mode="json", exclude_none=True)


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)
