"""Configuration management for the pair-run dispatcher.

This module provides a unified Settings class with flat fields loaded from
the environment (or a ``.env`` file), plus grouped views over them.

Usage:
    from pairrun.config import settings

    # Grouped settings
    settings.execution.exec_timeout_seconds
    settings.security.csrf_cookie

    # Flat access
    settings.exec_timeout_seconds
    settings.log_level
"""

import os
from typing import Optional

import structlog
from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .api import APIConfig, OriginList, parse_origin_list
from .execution import ExecutionConfig
from .security import SecurityConfig
from .logging import LoggingConfig
from .languages import (
    LANGUAGES,
    PLACEHOLDER_KEYS,
    Candidate,
    CompileSpec,
    DirectSpec,
    LanguageSpec,
    PlaceholderError,
    UnsupportedSpec,
    get_executable_languages,
    get_language,
    get_language_summaries,
    get_source_filename,
    get_supported_languages,
    is_supported_language,
)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000, ge=1, le=65535)
    api_debug: bool = Field(default=False)
    api_reload: bool = Field(default=False)
    enable_cors: bool = Field(default=False)
    cors_origins: OriginList = Field(default_factory=list)
    enable_docs: bool = Field(default=True)

    # Execution Configuration
    exec_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=600,
        description="Wall-clock limit for each spawned candidate process",
    )
    max_output_chars: int = Field(
        default=200_000,
        ge=1,
        description="Per-stream cap on captured stdout/stderr characters",
    )
    workspace_root: Optional[str] = Field(
        default=None,
        description="Parent directory for run workspaces (defaults to the system temp dir)",
    )
    workspace_prefix: str = Field(default="pair-run-", min_length=1)
    max_concurrent_runs: int = Field(
        default=0,
        ge=0,
        description="Upper bound on in-flight runs; 0 disables the limit",
    )

    # Security Configuration
    enforce_origin_policy: bool = Field(default=True)
    enforce_api_auth: bool = Field(default=True)
    api_auth_cookie: str = Field(default="__api_auth")
    api_auth_header: str = Field(default="x-api-auth")
    csrf_cookie: str = Field(default="__csrf_token")
    csrf_header: str = Field(default="x-csrf-token")
    min_api_auth_length: int = Field(default=32, ge=1)
    secure_cookies: bool = Field(default=False)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    enable_access_logs: bool = Field(default=True)

    @validator("workspace_root")
    def check_workspace_root(cls, v):
        """Warn early when the configured workspace root is missing."""
        if v and not os.path.isdir(v):
            structlog.get_logger("config").warning(
                "WORKSPACE_ROOT does not exist; runs will fail until it is created",
                workspace_root=v,
            )
        return v

    @validator("cors_origins", pre=True)
    def parse_cors_origins(cls, v):
        """Allow a comma-separated CORS_ORIGINS value."""
        return parse_origin_list(v)

    @property
    def api(self) -> APIConfig:
        """Access API configuration group."""
        return APIConfig(
            api_host=self.api_host,
            api_port=self.api_port,
            api_debug=self.api_debug,
            api_reload=self.api_reload,
            enable_cors=self.enable_cors,
            cors_origins=self.cors_origins,
            enable_docs=self.enable_docs,
        )

    @property
    def execution(self) -> ExecutionConfig:
        """Access execution configuration group."""
        return ExecutionConfig(
            exec_timeout_seconds=self.exec_timeout_seconds,
            max_output_chars=self.max_output_chars,
            workspace_root=self.workspace_root,
            workspace_prefix=self.workspace_prefix,
            max_concurrent_runs=self.max_concurrent_runs,
        )

    @property
    def security(self) -> SecurityConfig:
        """Access security configuration group."""
        return SecurityConfig(
            enforce_origin_policy=self.enforce_origin_policy,
            enforce_api_auth=self.enforce_api_auth,
            api_auth_cookie=self.api_auth_cookie,
            api_auth_header=self.api_auth_header,
            csrf_cookie=self.csrf_cookie,
            csrf_header=self.csrf_header,
            min_api_auth_length=self.min_api_auth_length,
            secure_cookies=self.secure_cookies,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
            enable_access_logs=self.enable_access_logs,
        )


# Global settings instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    # Grouped configs
    "APIConfig",
    "ExecutionConfig",
    "SecurityConfig",
    "LoggingConfig",
    # Language registry
    "LANGUAGES",
    "PLACEHOLDER_KEYS",
    "Candidate",
    "CompileSpec",
    "DirectSpec",
    "LanguageSpec",
    "PlaceholderError",
    "UnsupportedSpec",
    "get_executable_languages",
    "get_language",
    "get_language_summaries",
    "get_source_filename",
    "get_supported_languages",
    "is_supported_language",
]
