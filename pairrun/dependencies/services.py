"""Service dependency injection for the run dispatcher."""

# Standard library imports
from functools import lru_cache
from typing import Annotated

# Third-party imports
from fastapi import Depends
import structlog

# Local application imports
from ..services import RunDispatcher

logger = structlog.get_logger(__name__)


@lru_cache()
def get_run_dispatcher() -> RunDispatcher:
    """Get the process-wide run dispatcher."""
    dispatcher = RunDispatcher()
    logger.info(
        "Run dispatcher initialized",
        workspace_root=str(dispatcher.workspaces.root),
        timeout_seconds=dispatcher.runner.timeout,
        max_output_chars=dispatcher.runner.max_output,
    )
    return dispatcher


# Type aliases for dependency injection
RunDispatcherDep = Annotated[RunDispatcher, Depends(get_run_dispatcher)]
