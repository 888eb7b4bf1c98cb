"""Exception handlers that render every failure as a JSON ``error`` body."""

import traceback
from typing import Union

import structlog
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ..models.errors import (
    RunnerException,
    ErrorResponse,
    ErrorType,
    ErrorDetail,
)
from .request_helpers import get_client_ip

logger = structlog.get_logger(__name__)


def _log_by_status(status_code: int, event: str, request: Request, **fields) -> None:
    log = logger.error if status_code >= 500 else logger.warning
    log(
        event,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
        **fields,
    )


async def runner_exception_handler(
    request: Request, exc: RunnerException
) -> JSONResponse:
    """Render a RunnerException, including any run-shaped payload."""
    fields = {"error_type": exc.error_type.value, "message": exc.message}
    language = getattr(exc, "language", None)
    if language is not None:
        fields["language"] = language
    phase = getattr(exc, "phase", None)
    if phase is not None:
        fields["phase"] = phase
    if exc.details:
        fields["details"] = [d.model_dump(exclude_none=True) for d in exc.details]

    _log_by_status(exc.status_code, "Run request failed", request, **fields)
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render framework HTTP errors (404, 405, ...) in the same shape."""
    _log_by_status(exc.status_code, "HTTP error", request, detail=exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """Request bodies that are not JSON objects."""
    details = [
        ErrorDetail(
            field=" -> ".join(str(loc) for loc in error.get("loc", ())),
            message=error["msg"],
            code=error["type"],
        )
        for error in exc.errors()
    ]
    _log_by_status(
        422,
        "Malformed request",
        request,
        errors=[d.model_dump(exclude_none=True) for d in details],
    )

    body = ErrorResponse(
        error="Request validation failed",
        error_type=ErrorType.VALIDATION,
        details=details,
    )
    return JSONResponse(status_code=422, content=body.model_dump())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the traceback, hide it from the client."""
    _log_by_status(
        500,
        "Unhandled exception",
        request,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        traceback=traceback.format_exc(),
    )
    return JSONResponse(status_code=500, content={"error": "An unexpected error occurred"})
