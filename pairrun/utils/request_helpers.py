"""Shared request helper utilities."""

import secrets
from typing import Optional
from urllib.parse import urlsplit

from fastapi import Request


def get_client_ip(request: Request) -> str:
    """Get client IP address from request.

    Checks in order:
    1. X-Forwarded-For header (first IP in list)
    2. X-Real-IP header
    3. Direct client host

    Args:
        request: FastAPI Request object

    Returns:
        Client IP address string, or "unknown" if not determinable
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def origin_of(url: Optional[str]) -> Optional[str]:
    """Return ``scheme://host[:port]`` for a URL, or None if it has none.

    Default ports are dropped so ``https://a:443`` and ``https://a`` match.
    """
    if not url:
        return None
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    scheme = parts.scheme.lower()
    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    if port is None or (scheme, port) in {("http", 80), ("https", 443)}:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def request_origin(request: Request) -> Optional[str]:
    """Origin the request was addressed to."""
    return origin_of(str(request.base_url))


def is_same_origin(value: Optional[str], expected_origin: Optional[str]) -> bool:
    """Check that a header URL belongs to the expected origin."""
    if not value or not expected_origin:
        return False
    return origin_of(value) == expected_origin


def create_session_token() -> str:
    """Random 64-character hex token for auth/CSRF cookies."""
    return secrets.token_hex(32)
