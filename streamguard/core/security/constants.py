"""
Security Constants

Centralized defaults for the security module. Every value here can be
overridden through ``streamguard.config`` or a component's constructor.

The injection patterns and denylists below are best-effort defense in depth.
They match raw text only: percent-encoded (``javascript%3A``), HTML-entity
encoded or whitespace-padded variants are not decoded before matching and
will not be caught.
"""

import re

# Rate limiting defaults
DEFAULT_RATE_WINDOW_MS = 15 * 60 * 1000  # 15 minutes
DEFAULT_RATE_LIMIT = 100  # requests per window
RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

# Maximum lengths for untrusted inputs
MAX_URL_LENGTH = 2048
MAX_CONTENT_TYPE_LENGTH = 100
MAX_METADATA_STRING_LENGTH = 10000

# Source list caps
MAX_STREAMING_SOURCES = 50
MAX_SUBTITLE_SOURCES = 20

# URL validation
ALLOWED_URL_SCHEMES = frozenset({"http", "https"})

DANGEROUS_URL_SCHEMES = (
    "javascript:",
    "data:",
    "vbscript:",
    "file:",
    "ftp:",
    "mailto:",
)

URL_INJECTION_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"<script",
        r"javascript:",
        r"on\w+\s*=",
        r"eval\s*\(",
        r"document\.",
        r"window\.",
        r"alert\s*\(",
        r"confirm\s*\(",
        r"prompt\s*\(",
    )
)

# Request bodies are checked against the serialized JSON text
INPUT_INJECTION_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"<script",
        r"javascript:",
        r"on\w+\s*=",
        r"eval\s*\(",
        r"document\.",
        r"window\.",
    )
)

# Playable media types, compared in lowercase
ALLOWED_CONTENT_TYPES = frozenset(
    content_type.lower()
    for content_type in (
        "video/mp4",
        "video/webm",
        "video/ogg",
        "video/avi",
        "video/mov",
        "video/mkv",
        "application/x-mpegURL",
        "application/vnd.apple.mpegurl",
        "video/MP2T",
        "video/mp2t",
        "audio/mp4",
        "audio/webm",
        "audio/ogg",
    )
)

# Metadata keys removed outright, matched exactly
DANGEROUS_METADATA_FIELDS = frozenset({
    "script", "javascript", "onload", "onerror", "onclick", "onmouseover",
    "onfocus", "onblur", "onchange", "onsubmit", "onreset", "onselect",
    "onunload", "onbeforeunload", "onresize", "onscroll", "onkeydown",
    "onkeyup", "onkeypress", "onmousedown", "onmouseup", "onmousemove",
    "onmouseout", "onmouseenter", "onmouseleave", "oncontextmenu",
    "eval", "Function", "setTimeout", "setInterval", "execScript",
})

# Applied in order to every metadata string value
METADATA_SCRUB_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"<script[^>]*>.*?</script>",
        r"javascript:",
        r"vbscript:",
        r"data:",
        r"on\w+\s*=",
        r"eval\s*\(",
        r"Function\s*\(",
        r"setTimeout\s*\(",
        r"setInterval\s*\(",
    )
)

# Logging
SENSITIVE_LOG_FIELDS = frozenset({
    "password",
    "token",
    "key",
    "secret",
    "authorization",
    "cookie",
    "session",
    "api_key",
    "private_key",
})
REDACTION_MARKER = "[REDACTED]"

# Error responses
GENERIC_ERROR_MESSAGE = "An error occurred"
GENERIC_ERROR_STATUS = 500
INVALID_INPUT_ERROR = "Invalid input detected"
INVALID_INPUT_MESSAGE = "The request contains potentially dangerous content"

# Request ID header
REQUEST_ID_HEADER = "X-Request-ID"
