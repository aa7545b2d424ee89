"""
Input Validation Module

Validates untrusted strings (URLs, MIME types) and request bodies.

Every public entry point is fail-closed and never raises: rule failures are
raised internally as ``ValidationError`` and turned into a rejected
``ValidationVerdict`` at the boundary, and unexpected exceptions are treated
as rejections after being logged.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Collection, Mapping, Optional, Sequence
from urllib.parse import urlparse

from streamguard import config
from streamguard.core.security.constants import (
    ALLOWED_CONTENT_TYPES,
    ALLOWED_URL_SCHEMES,
    DANGEROUS_URL_SCHEMES,
    INPUT_INJECTION_PATTERNS,
    URL_INJECTION_PATTERNS,
)
from streamguard.core.security.secure_logger import secure_logger


class ValidationError(Exception):
    """Raised when input validation fails."""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


@dataclass(frozen=True)
class ValidationVerdict:
    """
    Outcome of a validation check.

    ``reason`` is for internal diagnostics only and must never be echoed to
    an external caller.
    """
    valid: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def accept(cls) -> "ValidationVerdict":
        return cls(valid=True)

    @classmethod
    def reject(cls, reason: str) -> "ValidationVerdict":
        return cls(valid=False, reason=reason)


def _preview(value: Any, length: int = 100) -> Any:
    if isinstance(value, str):
        return value[:length]
    return type(value).__name__


class UrlValidator:
    """
    Decides whether an untrusted string is a safe ``http(s)`` resource URL.

    The dangerous-scheme substring check overlaps the scheme check on
    purpose: it also catches tokens such as ``javascript:`` anywhere in the
    string, e.g. inside a query parameter.
    """

    def __init__(
        self,
        max_length: int = config.MAX_URL_LENGTH,
        allowed_schemes: Collection[str] = ALLOWED_URL_SCHEMES,
        dangerous_schemes: Sequence[str] = DANGEROUS_URL_SCHEMES,
        injection_patterns: Sequence[re.Pattern] = URL_INJECTION_PATTERNS,
    ):
        self.max_length = max_length
        self.allowed_schemes = frozenset(allowed_schemes)
        self.dangerous_schemes = tuple(s.lower() for s in dangerous_schemes)
        self.injection_patterns = tuple(injection_patterns)

    def _check(self, url: Any) -> None:
        if not isinstance(url, str):
            raise ValidationError("Invalid URL input type", field="url")

        if not url.strip():
            raise ValidationError("Empty URL provided", field="url")

        if len(url) > self.max_length:
            raise ValidationError("URL too long", field="url")

        try:
            parsed = urlparse(url)
            # Accessing the port validates it (non-numeric or out of range)
            parsed.port
        except ValueError as exc:
            raise ValidationError("Invalid URL format", field="url") from exc

        if parsed.scheme not in self.allowed_schemes:
            raise ValidationError("Invalid protocol", field="url")

        lowered = url.lower()
        if any(scheme in lowered for scheme in self.dangerous_schemes):
            raise ValidationError("Dangerous protocol detected", field="url")

        if any(pattern.search(url) for pattern in self.injection_patterns):
            raise ValidationError("Injection pattern detected", field="url")

        if not parsed.hostname:
            raise ValidationError("Invalid hostname", field="url")

    def check(self, url: Any) -> ValidationVerdict:
        try:
            self._check(url)
        except ValidationError as exc:
            secure_logger.warn(f"UrlValidator: {exc.message}", {"url": _preview(url)})
            return ValidationVerdict.reject(exc.message)
        except Exception as exc:
            secure_logger.error("UrlValidator: Error validating URL", exc)
            return ValidationVerdict.reject("Error validating URL")
        return ValidationVerdict.accept()

    def validate(self, url: Any) -> bool:
        return self.check(url).valid


class ContentTypeValidator:
    """Decides whether an untrusted MIME string is on the media allowlist."""

    def __init__(
        self,
        max_length: int = config.MAX_CONTENT_TYPE_LENGTH,
        allowed_types: Collection[str] = ALLOWED_CONTENT_TYPES,
    ):
        self.max_length = max_length
        self.allowed_types = frozenset(t.lower() for t in allowed_types)

    def _check(self, content_type: Any) -> None:
        if not isinstance(content_type, str):
            raise ValidationError("Invalid content type input", field="type")

        if not content_type.strip():
            raise ValidationError("Empty content type provided", field="type")

        if len(content_type) > self.max_length:
            raise ValidationError("Content type too long", field="type")

        if content_type.strip().lower() not in self.allowed_types:
            raise ValidationError("Unsupported content type", field="type")

    def check(self, content_type: Any) -> ValidationVerdict:
        try:
            self._check(content_type)
        except ValidationError as exc:
            secure_logger.warn(
                f"ContentTypeValidator: {exc.message}",
                {"content_type": _preview(content_type, 50)},
            )
            return ValidationVerdict.reject(exc.message)
        except Exception as exc:
            secure_logger.error("ContentTypeValidator: Error validating content type", exc)
            return ValidationVerdict.reject("Error validating content type")
        return ValidationVerdict.accept()

    def validate(self, content_type: Any) -> bool:
        return self.check(content_type).valid


_url_validator = UrlValidator()
_content_type_validator = ContentTypeValidator()


def get_url_validator() -> UrlValidator:
    """Get the default URL validator."""
    return _url_validator


def get_content_type_validator() -> ContentTypeValidator:
    """Get the default content type validator."""
    return _content_type_validator


def validate_content_url(url: Any) -> bool:
    """Return True if ``url`` is a safe, well-formed http(s) URL."""
    return _url_validator.validate(url)


def validate_content_type(content_type: Any) -> bool:
    """Return True if ``content_type`` is an allowed media MIME type."""
    return _content_type_validator.validate(content_type)


def validate_input(
    body: Any,
    patterns: Sequence[re.Pattern] = INPUT_INJECTION_PATTERNS,
) -> bool:
    """
    Check a decoded request body for common injection patterns.

    The body must be a JSON object or array. It is serialized back to JSON
    and the text is matched against ``patterns``, so keys and values at any
    depth are covered.
    """
    if not isinstance(body, (Mapping, list)):
        return False

    try:
        serialized = json.dumps(body, ensure_ascii=False)
    except (TypeError, ValueError, RecursionError) as exc:
        secure_logger.warn("InputValidator: Unserializable request body", {"error": type(exc).__name__})
        return False

    return not any(pattern.search(serialized) for pattern in patterns)
