"""API server configuration."""

import json
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Read raw from the environment so the validator can split it
OriginList = Annotated[List[str], NoDecode]


def parse_origin_list(value):
    """Accept CORS origins as a list, a JSON array or a comma-separated string."""
    if not isinstance(value, str):
        return value
    value = value.strip()
    if value.startswith("["):
        return json.loads(value)
    return [origin.strip() for origin in value.split(",") if origin.strip()]


class APIConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000, ge=1, le=65535)
    api_debug: bool = Field(default=False)
    api_reload: bool = Field(default=False)
    enable_cors: bool = Field(default=False)
    cors_origins: OriginList = Field(default_factory=list)
    enable_docs: bool = Field(default=True)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v):
        return parse_origin_list(v)
