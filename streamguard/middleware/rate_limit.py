"""
Rate Limiting Middleware

Global rate limiting middleware based on client address.
"""

from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from streamguard.core.security import RateLimiter, get_rate_limiter, log_security_event
from streamguard.schemas import RateLimitExceededResponse


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Admits or rejects each request before it reaches a handler.

    Rejections get a 429 with a fixed body and a ``Retry-After`` header
    equal to the window size.
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: Optional[RateLimiter] = None,
        exclude_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.limiter = limiter or get_rate_limiter()
        self.exclude_paths = set(exclude_paths or {"/health", "/healthz"})

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if any(path.startswith(p) for p in self.exclude_paths):
            return await call_next(request)

        limiter = self.limiter
        key = limiter.get_key_for_request(request)
        decision = limiter.check(key)

        if not decision.allowed:
            log_security_event(
                "rate_limit_exceeded",
                request=request,
                details={"client": key, "retry_after_seconds": decision.retry_after},
            )
            body = RateLimitExceededResponse(retry_after=limiter.retry_after_text)
            return JSONResponse(
                status_code=429,
                content=body.model_dump(by_alias=True),
                headers={"Retry-After": str(decision.retry_after)},
            )

        return await call_next(request)
