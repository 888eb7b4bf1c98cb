"""Logging configuration."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseSettings):
    """Structured logging settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    enable_access_logs: bool = Field(default=True)

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v):
        fmt = v.lower()
        if fmt not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return fmt
