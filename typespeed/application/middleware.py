"""HTTP middleware protecting the REST API.

- Per-client rate limits, with a stricter limit for folder scans
- A cap on request body size
- Security headers on every response
"""

import logging
import time
from typing import Callable, Optional

from cachetools import TTLCache
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW = 60
SCAN_PATH = "/api/scan"
UPLOAD_PATH = "/api/files"


class RateLimiter:
    """Sliding one-minute request counters per client and scope.

    Buckets live in a TTLCache so clients that stop sending requests are
    evicted without a cleanup pass.
    """

    def __init__(
        self,
        requests_per_minute: int,
        scan_requests_per_minute: int,
        max_clients: int = 10_000,
    ):
        self.requests_per_minute = requests_per_minute
        self.scan_requests_per_minute = scan_requests_per_minute
        self._buckets: TTLCache = TTLCache(maxsize=max_clients, ttl=RATE_LIMIT_WINDOW * 2)

    def hit(self, client: str, scope: str, limit: int, now: Optional[float] = None) -> bool:
        """Count a request and return False when the client already used up ``limit``."""
        now = time.time() if now is None else now
        key = (client, scope)
        bucket = [ts for ts in self._buckets.get(key, []) if now - ts < RATE_LIMIT_WINDOW]

        allowed = len(bucket) < limit
        if allowed:
            bucket.append(now)
        self._buckets[key] = bucket
        return allowed

    def reset(self) -> None:
        self._buckets.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects API requests over the per-minute limits with 429."""

    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not path.startswith("/api/"):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        if not self.limiter.hit(client, "api", self.limiter.requests_per_minute):
            return self._too_many_requests(client, path, self.limiter.requests_per_minute)

        if path == SCAN_PATH:
            logger.info(f"Scan requested from {client}")
            if not self.limiter.hit(client, "scan", self.limiter.scan_requests_per_minute):
                return self._too_many_requests(client, path, self.limiter.scan_requests_per_minute)

        return await call_next(request)

    def _too_many_requests(self, client: str, path: str, limit: int) -> JSONResponse:
        logger.warning(f"Rate limit exceeded by {client} on {path}")
        return JSONResponse(
            status_code=429,
            content={
                "detail": f"Rate limit exceeded. Maximum {limit} requests per minute.",
                "retry_after": RATE_LIMIT_WINDOW,
            },
            headers={"Retry-After": str(RATE_LIMIT_WINDOW)},
        )


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose declared body size is over the limit with 413.

    File uploads have their own, larger limit.
    """

    def __init__(self, app, max_size: int, max_upload_size: int):
        super().__init__(app)
        self.max_size = max_size
        self.max_upload_size = max_upload_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length is None:
            return await call_next(request)

        max_size = self.max_upload_size if request.url.path == UPLOAD_PATH else self.max_size
        try:
            size = int(content_length)
        except ValueError:
            return JSONResponse(status_code=400, content={"detail": "Invalid Content-Length header"})

        if size > max_size:
            logger.warning(f"Rejected {size} byte request to {request.url.path}")
            return JSONResponse(
                status_code=413,
                content={"detail": "Request payload too large", "max_size": max_size},
            )

        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every HTTP response."""

    CONTENT_SECURITY_POLICY = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; "
        "connect-src 'self'; "
        "font-src 'self'; "
        "object-src 'none'; "
        "media-src 'self'; "
        "frame-src 'none'"
    )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = self.CONTENT_SECURITY_POLICY
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"
        response.headers["X-DNS-Prefetch-Control"] = "off"
        return response
