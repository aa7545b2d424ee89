"""
Request Logging Middleware

Tags each request with an ID and logs the outcome through the secure logger.
"""

import time
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from streamguard.core.security import (
    REQUEST_ID_HEADER,
    get_client_ip,
    get_request_id,
    secure_logger,
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, client, status and duration. Never bodies or headers.

    Every request, logged or not, gets ``request.state.request_id`` and the
    same value in the ``X-Request-ID`` response header. A client-supplied ID
    is reused only if it is short and alphanumeric.
    """

    def __init__(self, app: ASGIApp, exclude_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        self.exclude_paths = set(exclude_paths or {"/health", "/healthz"})

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = get_request_id(request)
        request.state.request_id = request_id

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id

        if request.url.path not in self.exclude_paths:
            secure_logger.log_request(
                method=request.method,
                url=request.url.path,
                client_ip=get_client_ip(request),
                status_code=response.status_code,
                user_agent=request.headers.get("User-Agent"),
                response_time_ms=duration_ms,
                request_id=request_id,
            )

        return response
