"""Run request/response models and execution outcome types."""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

PHASE_COMPILE = "compile"
PHASE_RUN = "run"


class RunRequest(BaseModel):
    """Request to run a snippet.

    Missing or non-string values are read as empty strings so they are
    rejected by the dispatcher's validation rather than by schema errors.
    """

    code: str = Field(default="", description="Source code to execute")
    language: str = Field(default="", description="Language id from the registry")

    @field_validator("code", "language", mode="before")
    @classmethod
    def coerce_to_string(cls, v):
        return v if isinstance(v, str) else ""

    @classmethod
    def from_payload(cls, payload: Any) -> "RunRequest":
        """Build a request from any decoded JSON body; non-objects read as empty."""
        return cls.model_validate(payload if isinstance(payload, dict) else {})


class RunResponse(BaseModel):
    """Normalized run result consumed by the editor's run history."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    exit_code: int = Field(..., alias="exitCode")
    timed_out: bool = Field(default=False, alias="timedOut")
    stdout: str = Field(default="")
    stderr: str = Field(default="")
    error: Optional[str] = Field(default=None)

    def to_content(self) -> Dict[str, Any]:
        """JSON body with camelCase keys; ``error`` only when set."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of spawning a single candidate."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    not_found: bool = False

    @classmethod
    def nothing_ran(cls) -> "ExecutionResult":
        """Placeholder result before any candidate has been tried."""
        return cls(exit_code=127, not_found=True)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    def with_stderr(self, extra: str) -> "ExecutionResult":
        return replace(self, stderr=self.stderr + extra)


@dataclass(frozen=True)
class Rejected:
    """The request was refused before anything was spawned."""

    reason: str


@dataclass(frozen=True)
class ToolMissing:
    """Every candidate of a phase reported a missing binary."""

    phase: str
    result: ExecutionResult


@dataclass(frozen=True)
class CompileFailed:
    """The compiler ran but failed or timed out; the program never ran."""

    result: ExecutionResult


@dataclass(frozen=True)
class Completed:
    """The program ran to termination (successfully or not)."""

    result: ExecutionResult

    @property
    def ok(self) -> bool:
        return self.result.succeeded


RunOutcome = Union[Rejected, ToolMissing, CompileFailed, Completed]
