"""
Input Validation Middleware

Rejects request bodies that contain common injection patterns.
"""

import json
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from streamguard.core.security import log_security_event, validate_input
from streamguard.schemas import InvalidInputResponse


class InputValidationMiddleware(BaseHTTPMiddleware):
    """
    Runs ``validate_input`` over every non-empty request body.

    A body that is not valid JSON is rejected the same way as a body that
    matches an injection pattern.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        body = await request.body()
        if body:
            try:
                payload = json.loads(body)
            except (UnicodeDecodeError, ValueError, RecursionError):
                payload = None

            if not validate_input(payload):
                log_security_event(
                    "invalid_input",
                    request=request,
                    details={"body_length": len(body)},
                )
                return JSONResponse(status_code=400, content=InvalidInputResponse().model_dump())

        return await call_next(request)
