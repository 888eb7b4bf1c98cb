"""Middleware for the run dispatcher."""

from .security import SecurityMiddleware, RequestLoggingMiddleware

__all__ = ["SecurityMiddleware", "RequestLoggingMiddleware"]
