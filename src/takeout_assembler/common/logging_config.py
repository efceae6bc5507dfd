"""Shared logging configuration."""

from typing import Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator


class LoggingConfig(BaseModel):
    """Logging section of every takeout_assembler configuration file."""

    model_config = ConfigDict(extra='forbid')

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level"
    )
    format: Literal["simple", "detailed", "json"] = Field(
        default="json",
        description="Console log format"
    )
    file: str | None = Field(
        default=None,
        description="Optional log file path (always JSON, rotated)"
    )

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator('format', mode='before')
    @classmethod
    def normalize_format(cls, v: str) -> str:
        """Accept format names in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('file', mode='before')
    @classmethod
    def empty_file_is_none(cls, v):
        """Treat an empty path (e.g. from an env override) as no file."""
        if isinstance(v, str) and not v.strip():
            return None
        return v
