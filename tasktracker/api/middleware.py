"""HTTP middleware: rate limiting, error capture, security headers and request logging."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware

from tasktracker.api.errors import error_response, server_error_response
from tasktracker.config import Settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_after: float


class RateLimiter:
    """Fixed-window request counter keyed by client.

    State lives in process memory, so each worker enforces its own budget.
    """

    # Expired windows are swept once this many keys are tracked
    SWEEP_THRESHOLD = 10_000

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}

    def hit(self, key: str) -> RateLimitResult:
        """Count one request for key and report whether it is allowed."""
        now = self._clock()
        if len(self._windows) >= self.SWEEP_THRESHOLD:
            self._sweep(now)

        started, count = self._windows.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0
        count += 1
        self._windows[key] = (started, count)

        reset_after = max(0.0, self.window_seconds - (now - started))
        return RateLimitResult(
            allowed=count <= self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_after=reset_after,
        )

    def reset(self) -> None:
        self._windows.clear()

    def _sweep(self, now: float) -> None:
        self._windows = {
            key: window
            for key, window in self._windows.items()
            if now - window[0] < self.window_seconds
        }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests under a path prefix once a client exceeds its budget."""

    def __init__(self, app, limiter: RateLimiter, path_prefix: str = "/api/") -> None:
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        result = self.limiter.hit(client_ip)
        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            return error_response(
                status.HTTP_429_TOO_MANY_REQUESTS,
                RATE_LIMIT_MESSAGE,
                headers={"Retry-After": str(int(result.reset_after) + 1)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turn unclassified failures into the 500 envelope inside the middleware stack.

    The response then passes through the CORS and security-header layers like
    any other.
    """

    def __init__(self, app, settings: Settings) -> None:
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return server_error_response(request, exc, self.settings)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add basic hardening headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of each request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms"
        )
        return response
