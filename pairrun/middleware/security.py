"""Security middleware for the run dispatcher."""

# Standard library imports
import hmac
import time
from typing import Callable, List, Optional, Tuple

# Third-party imports
import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

# Local application imports
from ..config import SecurityConfig, settings
from ..models.errors import SecurityPolicyError
from ..utils.request_helpers import (
    create_session_token,
    get_client_ip,
    is_same_origin,
    request_origin,
)

logger = structlog.get_logger(__name__)

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
ALLOWED_FETCH_SITES = {"same-origin", "same-site", "none"}


def _tokens_match(cookie_value: Optional[str], header_value: Optional[str]) -> bool:
    if not cookie_value or not header_value:
        return False
    return hmac.compare_digest(cookie_value.encode(), header_value.encode())


class SecurityMiddleware:
    """Same-origin/CSRF enforcement, session cookies and security headers.

    Browsers receive an API auth token and a CSRF token as cookies on their
    first response. State-changing API calls must echo both tokens back in
    headers, and every API call must come from the page's own origin.
    """

    def __init__(self, app: Callable, config: Optional[SecurityConfig] = None):
        self.app = app
        self.config = config or settings.security
        self.protected_prefix = "/api/"
        self.excluded_paths = {"/api/languages"}

    async def __call__(self, scope: dict, receive: Callable, send: Callable):
        """Process request through security middleware."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        missing_cookies = self._missing_cookies(request)

        def add_security_headers(message):
            if message["type"] != "http.response.start":
                return
            headers: List[Tuple[bytes, bytes]] = [
                (k, v)
                for k, v in message.get("headers", [])
                if k.lower()
                not in {
                    b"x-content-type-options",
                    b"x-frame-options",
                    b"referrer-policy",
                    b"permissions-policy",
                }
            ]
            headers.extend(
                [
                    (b"x-content-type-options", b"nosniff"),
                    (b"x-frame-options", b"DENY"),
                    (b"referrer-policy", b"strict-origin-when-cross-origin"),
                    (b"permissions-policy", b"geolocation=(), microphone=(), camera=()"),
                ]
            )
            for name in missing_cookies:
                headers.append((b"set-cookie", self._cookie_header(name)))
            message["headers"] = headers

        async def send_wrapper(message):
            add_security_headers(message)
            await send(message)

        try:
            if self._is_protected(request):
                self._check_request(request)
        except SecurityPolicyError as e:
            logger.warning(
                "Request blocked by security policy",
                path=request.url.path,
                method=request.method,
                status_code=e.status_code,
                reason=e.message,
                client_ip=get_client_ip(request),
            )
            response = JSONResponse(
                status_code=e.status_code,
                content={"error": e.message, "timestamp": time.time()},
            )
            await response(scope, receive, send_wrapper)
            return

        await self.app(scope, receive, send_wrapper)

    def _is_protected(self, request: Request) -> bool:
        path = request.url.path
        if not path.startswith(self.protected_prefix):
            return False
        if path in self.excluded_paths and request.method in SAFE_METHODS:
            return False
        return True

    def _check_request(self, request: Request) -> None:
        """Apply the origin policy, then the auth/CSRF token checks.

        Raises:
            SecurityPolicyError: with status 403 or 401
        """
        if self.config.enforce_origin_policy:
            expected = request_origin(request)
            same_origin = is_same_origin(
                request.headers.get("origin"), expected
            ) or is_same_origin(request.headers.get("referer"), expected)
            fetch_site = request.headers.get("sec-fetch-site")
            fetch_site_allowed = not fetch_site or fetch_site in ALLOWED_FETCH_SITES
            if not same_origin or not fetch_site_allowed:
                raise SecurityPolicyError("Blocked by CSRF origin policy", status_code=403)

        if request.method in SAFE_METHODS or not self.config.enforce_api_auth:
            return

        auth_cookie = request.cookies.get(self.config.api_auth_cookie)
        auth_header = request.headers.get(self.config.api_auth_header)
        if (
            not _tokens_match(auth_cookie, auth_header)
            or len(auth_cookie) < self.config.min_api_auth_length
        ):
            raise SecurityPolicyError("Invalid API auth session", status_code=401)

        csrf_cookie = request.cookies.get(self.config.csrf_cookie)
        csrf_header = request.headers.get(self.config.csrf_header)
        if not _tokens_match(csrf_cookie, csrf_header):
            raise SecurityPolicyError("Invalid CSRF token", status_code=403)

    def _missing_cookies(self, request: Request) -> List[str]:
        return [
            name
            for name in (self.config.api_auth_cookie, self.config.csrf_cookie)
            if not request.cookies.get(name)
        ]

    def _cookie_header(self, name: str) -> bytes:
        # Readable by page scripts so they can echo the value in a header
        cookie = f"{name}={create_session_token()}; Path=/; SameSite=strict"
        if self.config.secure_cookies:
            cookie += "; Secure"
        return cookie.encode("latin-1")


class RequestLoggingMiddleware:
    """Access log with method, path, status and duration per request.

    Health probes are logged at debug level so polling does not flood the
    log. Disabled entirely when ``ENABLE_ACCESS_LOGS`` is false.
    """

    quiet_paths = {"/health"}

    def __init__(self, app: Callable, enabled: Optional[bool] = None):
        self.app = app
        self.enabled = settings.enable_access_logs if enabled is None else enabled

    async def __call__(self, scope: dict, receive: Callable, send: Callable):
        if scope["type"] != "http" or not self.enabled:
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        start = time.perf_counter()
        status: Optional[int] = None

        async def send_wrapper(message):
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            logger.error(
                "Request raised",
                method=request.method,
                path=request.url.path,
                error=str(e),
            )
            raise
        finally:
            log_kwargs = dict(
                method=request.method,
                path=request.url.path,
                status=status,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                client_ip=get_client_ip(request),
            )
            if status is None or status >= 500:
                logger.error("Request failed", **log_kwargs)
            elif status >= 400:
                logger.warning("Request rejected", **log_kwargs)
            elif request.url.path in self.quiet_paths:
                logger.debug("Request processed", **log_kwargs)
            else:
                logger.info("Request processed", **log_kwargs)
