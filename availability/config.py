"""Runtime settings for the availability renderer."""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .event_utils import DEFAULT_UTC_OFFSET_HOURS


class Settings(BaseSettings):
    """Configuration sourced from ``STUDIO_*`` environment variables or a .env file."""

    schedule_file: Optional[Path] = Field(
        default=None,
        description="JSON schedule calendar; the built-in calendar is used when unset.",
    )
    utc_offset_hours: int = Field(default=DEFAULT_UTC_OFFSET_HOURS)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="STUDIO_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("utc_offset_hours")
    @classmethod
    def validate_offset(cls, v: int) -> int:
        if not -12 <= v <= 14:
            raise ValueError("utc_offset_hours must be between -12 and 14")
        return v

    @field_validator("log_level")
    @classmethod
    def normalise_level(cls, v: str) -> str:
        return v.upper()
