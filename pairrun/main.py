"""Main FastAPI application for the pair-run dispatcher."""

# Standard library imports
from contextlib import asynccontextmanager

# Third-party imports
import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

# Local application imports
from . import __version__
from .api import health, languages, run
from .config import get_executable_languages, settings
from .dependencies import get_run_dispatcher
from .middleware.security import SecurityMiddleware, RequestLoggingMiddleware
from .models.errors import RunnerException
from .utils.error_handlers import (
    runner_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from .utils.logging import setup_logging

# Setup logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting pair-run", version=__version__)

    if not settings.enforce_origin_policy or not settings.enforce_api_auth:
        logger.warning(
            "API security checks relaxed - enable them in production",
            enforce_origin_policy=settings.enforce_origin_policy,
            enforce_api_auth=settings.enforce_api_auth,
        )
    if settings.api_debug:
        logger.warning("Debug mode is enabled - disable in production")
    if settings.max_concurrent_runs == 0:
        logger.info("No limit on concurrent runs (MAX_CONCURRENT_RUNS=0)")

    dispatcher = get_run_dispatcher()
    app.state.dispatcher = dispatcher

    logger.info(
        "pair-run startup completed",
        executable_languages=len(get_executable_languages()),
    )

    yield

    logger.info("pair-run shutdown completed")


app = FastAPI(
    title="pair-run",
    description="Run code snippets in ~50 languages with host toolchains",
    version=__version__,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    debug=settings.api_debug,
    lifespan=lifespan,
)

# Add middleware (last added runs first)
app.add_middleware(SecurityMiddleware)
app.add_middleware(RequestLoggingMiddleware)

if settings.enable_cors:
    origins = settings.cors_origins if settings.cors_origins else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    logger.info("CORS enabled", origins=origins)

# Register global error handlers
app.add_exception_handler(RunnerException, runner_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(run.router, tags=["run"])
app.include_router(languages.router, tags=["languages"])
app.include_router(health.router, tags=["health"])


def run_server():
    logger.info(f"Starting HTTP server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "pairrun.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
        access_log=settings.enable_access_logs,
        timeout_keep_alive=120,
    )


if __name__ == "__main__":
    run_server()
