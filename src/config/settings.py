"""
Application settings using Pydantic Settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CODE_PATTERN = r"^[0-9A-Za-z\-\+\.\$\/\%]+$"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Prefer local overrides while keeping .env as the default source
        env_file=(".env.local", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Environment
    environment: Literal["dev", "staging", "prod"] = "dev"

    # Validation policy
    scan_min_code_length: int = Field(8, ge=1, description="Shortest accepted code")
    scan_max_code_length: int = Field(20, ge=1, description="Longest accepted code")
    scan_valid_code_pattern: str = Field(
        DEFAULT_CODE_PATTERN, description="Regex every accepted code must match"
    )

    # Pipeline timing
    scan_tick_interval_ms: int = Field(0, ge=0, description="Milliseconds between live-scan ticks")
    scan_fallback_delay_ms: int = Field(
        0, ge=0, description="Artificial delay before the fallback engine runs"
    )
    scan_copy_to_clipboard: bool = Field(True, description="Copy accepted codes to the clipboard")

    # Camera
    camera_index: int = Field(0, ge=0, description="OpenCV capture device index")
    camera_width: int = 1280
    camera_height: int = 720
    camera_open_retries: int = Field(3, ge=1, description="Attempts to open the camera stream")

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("scan_max_code_length")
    @classmethod
    def check_length_range(cls, v: int, info) -> int:
        minimum = info.data.get("scan_min_code_length")
        if minimum is not None and v < minimum:
            raise ValueError("scan_max_code_length must be >= scan_min_code_length")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "prod"

    @property
    def tick_interval_seconds(self) -> float:
        return self.scan_tick_interval_ms / 1000

    @property
    def fallback_delay_seconds(self) -> float:
        return self.scan_fallback_delay_ms / 1000


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
