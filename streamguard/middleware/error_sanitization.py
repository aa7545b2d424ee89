"""
Error Sanitization Middleware

Sanitizes error responses to prevent information leakage.
"""

from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from streamguard.core.security import SanitizedError, secure_error_handler, secure_logger


def sanitized_response(error: SanitizedError) -> JSONResponse:
    return JSONResponse(status_code=error.status, content=error.to_dict())


class ErrorSanitizationMiddleware(BaseHTTPMiddleware):
    """
    Single exit point for internal errors.

    - Unhandled exceptions are logged in full and replaced by the generic
      sanitized error.
    - 5xx responses produced by handlers have their bodies replaced too.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            response = await call_next(request)
        except Exception as exc:
            return sanitized_response(secure_error_handler(exc))

        if response.status_code >= 500:
            request_id = getattr(request.state, "request_id", "unknown")
            secure_logger.warn(
                "Replaced server error response",
                {"status_code": response.status_code, "request_id": request_id},
            )
            return sanitized_response(SanitizedError())

        return response
