"""Dependencies package for the run dispatcher."""

from .services import RunDispatcherDep, get_run_dispatcher

__all__ = ["RunDispatcherDep", "get_run_dispatcher"]
