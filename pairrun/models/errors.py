"""Error models and exception classes for the run dispatcher."""

import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    """Error type enumeration."""

    VALIDATION = "validation"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    TOOL_NOT_FOUND = "tool_not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    INTERNAL_SERVER = "internal_server"


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: Optional[str] = Field(None, description="Field name for validation errors")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")


class ErrorResponse(BaseModel):
    """Standardized error response model."""

    model_config = ConfigDict(use_enum_values=True)

    error: str = Field(..., description="Main error message")
    error_type: ErrorType = Field(..., description="Error category")
    details: Optional[List[ErrorDetail]] = Field(
        None, description="Additional error details"
    )
    timestamp: float = Field(default_factory=time.time, description="Error timestamp")


class RunnerException(Exception):
    """Base exception for the run dispatcher.

    Subclasses may carry an extra ``payload`` that is merged into the JSON
    body, so run-shaped failures (unsupported language, missing toolchain)
    keep the ``ok``/``exitCode``/``stdout``/``stderr`` fields the UI logs.
    """

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.INTERNAL_SERVER,
        status_code: int = 500,
        details: Optional[List[ErrorDetail]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or []
        self.payload = payload or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.message,
            error_type=self.error_type,
            details=self.details if self.details else None,
        )

    def to_content(self) -> Dict[str, Any]:
        """Body returned to the client."""
        if self.payload:
            content = dict(self.payload)
            content.setdefault("error", self.message)
            return content
        return {"error": self.message}


class ValidationError(RunnerException):
    """Request validation errors (empty code, unrecognized language)."""

    def __init__(self, message: str = "Validation failed", **kwargs):
        super().__init__(
            message=message, error_type=ErrorType.VALIDATION, status_code=400, **kwargs
        )


class UnsupportedLanguageError(RunnerException):
    """Recognized language that the runner will not execute."""

    def __init__(self, language: str, reason: str, **kwargs):
        self.language = language
        self.reason = reason
        super().__init__(
            message=reason,
            error_type=ErrorType.UNSUPPORTED_LANGUAGE,
            status_code=400,
            **kwargs,
        )


class ToolNotFoundError(RunnerException):
    """No candidate binary for a phase exists on the host."""

    def __init__(self, language: str, phase: str, message: str, **kwargs):
        self.language = language
        self.phase = phase
        super().__init__(
            message=message,
            error_type=ErrorType.TOOL_NOT_FOUND,
            status_code=400,
            **kwargs,
        )


class SecurityPolicyError(RunnerException):
    """Request rejected by the origin/CSRF/auth-session policy."""

    def __init__(self, message: str, status_code: int = 403, **kwargs):
        error_type = (
            ErrorType.AUTHENTICATION if status_code == 401 else ErrorType.AUTHORIZATION
        )
        super().__init__(
            message=message, error_type=error_type, status_code=status_code, **kwargs
        )
