"""Security configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SecurityConfig(BaseSettings):
    """Same-origin, CSRF and API auth session settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    enforce_origin_policy: bool = Field(default=True)
    enforce_api_auth: bool = Field(default=True)
    api_auth_cookie: str = Field(default="__api_auth")
    api_auth_header: str = Field(default="x-api-auth")
    csrf_cookie: str = Field(default="__csrf_token")
    csrf_header: str = Field(default="x-csrf-token")
    min_api_auth_length: int = Field(default=32, ge=1)
    secure_cookies: bool = Field(default=False)
