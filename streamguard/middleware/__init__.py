"""
Security middleware stack for streamguard.

Provides:
- Rate limiting
- Request body validation
- Request ID tagging and request logging
- Error sanitization
"""

from streamguard.middleware.rate_limit import RateLimitMiddleware
from streamguard.middleware.input_validation import InputValidationMiddleware
from streamguard.middleware.logging import RequestLoggingMiddleware
from streamguard.middleware.error_sanitization import ErrorSanitizationMiddleware

__all__ = [
    "RateLimitMiddleware",
    "InputValidationMiddleware",
    "RequestLoggingMiddleware",
    "ErrorSanitizationMiddleware",
]
