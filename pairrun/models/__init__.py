"""Data models for the run dispatcher."""

from .run import (
    PHASE_COMPILE,
    PHASE_RUN,
    CompileFailed,
    Completed,
    ExecutionResult,
    Rejected,
    RunOutcome,
    RunRequest,
    RunResponse,
    ToolMissing,
)
from .errors import (
    ErrorType,
    ErrorDetail,
    ErrorResponse,
    RunnerException,
    ValidationError,
    UnsupportedLanguageError,
    ToolNotFoundError,
    SecurityPolicyError,
)

__all__ = [
    # Run models
    "PHASE_COMPILE",
    "PHASE_RUN",
    "CompileFailed",
    "Completed",
    "ExecutionResult",
    "Rejected",
    "RunOutcome",
    "RunRequest",
    "RunResponse",
    "ToolMissing",
    # Error models
    "ErrorType",
    "ErrorDetail",
    "ErrorResponse",
    "RunnerException",
    "ValidationError",
    "UnsupportedLanguageError",
    "ToolNotFoundError",
    "SecurityPolicyError",
]
