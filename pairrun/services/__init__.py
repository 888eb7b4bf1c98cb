"""Service layer for the run dispatcher."""

from .execution import (
    RunDispatcher,
    ProcessRunner,
    WorkspaceManager,
    outcome_to_response,
)

__all__ = ["RunDispatcher", "ProcessRunner", "WorkspaceManager", "outcome_to_response"]
