"""Execution engine configuration."""

import tempfile
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExecutionConfig(BaseSettings):
    """Timeouts, output bounds and workspace placement for code runs."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    exec_timeout_seconds: float = Field(default=15.0, gt=0, le=600)
    max_output_chars: int = Field(default=200_000, ge=1)
    workspace_root: Optional[str] = Field(default=None)
    workspace_prefix: str = Field(default="pair-run-", min_length=1)
    max_concurrent_runs: int = Field(default=0, ge=0)

    def get_workspace_root(self) -> str:
        """Directory under which per-run workspaces are created."""
        return self.workspace_root or tempfile.gettempdir()
