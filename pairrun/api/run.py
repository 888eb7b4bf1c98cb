"""Code run endpoint."""

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse
import structlog

from ..dependencies import RunDispatcherDep
from ..models import RunRequest, RunResponse
from ..services.execution import outcome_to_response

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/api/run",
    response_model=RunResponse,
    response_model_by_alias=True,
    summary="Run a code snippet",
)
async def run_code(
    dispatcher: RunDispatcherDep,
    payload: Any = Body(None, description="JSON object with code and language"),
) -> JSONResponse:
    """Execute submitted code in the requested language.

    Program failures (non-zero exit, timeout, compile errors) are reported
    with status 200 and ``ok: false``. Invalid requests, unsupported
    languages and missing toolchains are reported with status 400.
    """
    request = RunRequest.from_payload(payload)

    # Raises ValidationError before any workspace is created
    dispatcher.validate(request.language, request.code)

    logger.info(
        "Run requested",
        language=request.language,
        code_chars=len(request.code),
    )
    outcome = await dispatcher.run(request.language, request.code)
    response = outcome_to_response(request.language, outcome)
    return JSONResponse(status_code=200, content=response.to_content())
