"""Health check endpoint."""

from fastapi import APIRouter

from .. import __version__
from ..config import get_executable_languages, get_supported_languages

router = APIRouter()


@router.get("/health", summary="Basic health check")
async def basic_health_check():
    """Basic health check endpoint that doesn't require authentication."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "pair-run",
        "languages": len(get_supported_languages()),
        "executable_languages": len(get_executable_languages()),
    }
