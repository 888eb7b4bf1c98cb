"""Language registry endpoint."""

from fastapi import APIRouter

from ..config import get_language_summaries

router = APIRouter()


@router.get("/api/languages", summary="List registry languages")
async def list_languages():
    """Every recognized language with its execution strategy."""
    return {"languages": get_language_summaries()}
