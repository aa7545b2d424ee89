"""
Security Utilities

Request ID tracking and request-aware security event logging.
"""

import re
import secrets
from typing import Any, Dict, Optional

from fastapi import Request

from streamguard.core.security.constants import REQUEST_ID_HEADER
from streamguard.core.security.secure_logger import secure_logger

_REQUEST_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


def generate_request_id() -> str:
    """Generate a unique request ID."""
    return secrets.token_hex(16)


def get_request_id(request: Request) -> str:
    """Get or generate request ID from request."""
    request_id = request.headers.get(REQUEST_ID_HEADER)
    if request_id and len(request_id) <= 64 and _REQUEST_ID_PATTERN.match(request_id):
        return request_id
    return generate_request_id()


def get_client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def log_security_event(
    event_type: str,
    request: Optional[Request] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log a security-relevant event with request context.

    ``details`` is redacted by the secure logger before it is written.
    """
    log_data: Dict[str, Any] = dict(details or {})

    if request is not None:
        log_data["client_ip"] = get_client_ip(request)
        log_data["path"] = str(request.url.path)
        log_data["method"] = getattr(request, "method", "WEBSOCKET")
        log_data["request_id"] = getattr(request.state, "request_id", None) or get_request_id(request)

    secure_logger.log_security_event(event_type, log_data)
