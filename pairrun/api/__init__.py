"""API endpoints for the run dispatcher."""

from . import run, languages, health

__all__ = ["run", "languages", "health"]
