"""
Security module for streamguard.

Provides:
- Sliding window rate limiting (in-memory, per-key locking)
- URL and content type validation
- Metadata sanitization
- Streaming/subtitle source list validation
- Error sanitization and secure logging
"""

from streamguard.core.security.constants import (
    ALLOWED_CONTENT_TYPES,
    ALLOWED_URL_SCHEMES,
    DANGEROUS_METADATA_FIELDS,
    DEFAULT_RATE_LIMIT,
    DEFAULT_RATE_WINDOW_MS,
    GENERIC_ERROR_MESSAGE,
    INVALID_INPUT_ERROR,
    INVALID_INPUT_MESSAGE,
    MAX_CONTENT_TYPE_LENGTH,
    MAX_METADATA_STRING_LENGTH,
    MAX_STREAMING_SOURCES,
    MAX_SUBTITLE_SOURCES,
    MAX_URL_LENGTH,
    RATE_LIMIT_MESSAGE,
    REDACTION_MARKER,
    REQUEST_ID_HEADER,
    SENSITIVE_LOG_FIELDS,
)
from streamguard.core.security.secure_logger import (
    SecureLogger,
    redact,
    secure_logger,
)
from streamguard.core.security.errors import (
    SanitizedError,
    secure_error_handler,
)
from streamguard.core.security.validation import (
    ContentTypeValidator,
    UrlValidator,
    ValidationError,
    ValidationVerdict,
    get_content_type_validator,
    get_url_validator,
    validate_content_type,
    validate_content_url,
    validate_input,
)
from streamguard.core.security.sanitization import (
    MetadataSanitizer,
    MetadataTree,
    MetadataValue,
    get_metadata_sanitizer,
    sanitize_content_metadata,
)
from streamguard.core.security.sources import (
    SourceListValidator,
    get_streaming_source_validator,
    get_subtitle_source_validator,
    validate_streaming_sources,
    validate_subtitle_sources,
)
from streamguard.core.security.rate_limiting import (
    ClientWindow,
    RateLimitDecision,
    RateLimiter,
    describe_window,
    get_rate_limiter,
)
from streamguard.core.security.utils import (
    generate_request_id,
    get_client_ip,
    get_request_id,
    log_security_event,
)

__all__ = [
    # Constants
    "ALLOWED_CONTENT_TYPES",
    "ALLOWED_URL_SCHEMES",
    "DANGEROUS_METADATA_FIELDS",
    "DEFAULT_RATE_LIMIT",
    "DEFAULT_RATE_WINDOW_MS",
    "GENERIC_ERROR_MESSAGE",
    "INVALID_INPUT_ERROR",
    "INVALID_INPUT_MESSAGE",
    "MAX_CONTENT_TYPE_LENGTH",
    "MAX_METADATA_STRING_LENGTH",
    "MAX_STREAMING_SOURCES",
    "MAX_SUBTITLE_SOURCES",
    "MAX_URL_LENGTH",
    "RATE_LIMIT_MESSAGE",
    "REDACTION_MARKER",
    "REQUEST_ID_HEADER",
    "SENSITIVE_LOG_FIELDS",
    # Logging
    "SecureLogger",
    "redact",
    "secure_logger",
    # Errors
    "SanitizedError",
    "secure_error_handler",
    # Validation
    "ContentTypeValidator",
    "UrlValidator",
    "ValidationError",
    "ValidationVerdict",
    "get_content_type_validator",
    "get_url_validator",
    "validate_content_type",
    "validate_content_url",
    "validate_input",
    # Sanitization
    "MetadataSanitizer",
    "MetadataTree",
    "MetadataValue",
    "get_metadata_sanitizer",
    "sanitize_content_metadata",
    # Source lists
    "SourceListValidator",
    "get_streaming_source_validator",
    "get_subtitle_source_validator",
    "validate_streaming_sources",
    "validate_subtitle_sources",
    # Rate limiting
    "ClientWindow",
    "RateLimitDecision",
    "RateLimiter",
    "describe_window",
    "get_rate_limiter",
    # Utils
    "generate_request_id",
    "get_client_ip",
    "get_request_id",
    "log_security_event",
]
