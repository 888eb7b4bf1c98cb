"""Multi-language code execution.

This package provides the run pipeline:
- workspace.py: per-run temp directory lifecycle
- process.py: candidate spawning with timeout and bounded output
- dispatcher.py: language resolution, compile/run phases, outcome mapping
"""

from .dispatcher import RunDispatcher, outcome_to_response, tool_missing_message
from .process import ProcessRunner, materialize_candidate, substitute_placeholders
from .workspace import Workspace, WorkspaceManager

__all__ = [
    "RunDispatcher",
    "outcome_to_response",
    "tool_missing_message",
    "ProcessRunner",
    "materialize_candidate",
    "substitute_placeholders",
    "Workspace",
    "WorkspaceManager",
]
