"""
Secure Logging Module

Leveled logging with redaction of sensitive metadata fields.

Redaction is single-level: only top-level keys of a metadata mapping are
checked against the sensitive field set. Nested mappings pass through as-is.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Collection, Mapping, Optional

from streamguard.config import logger as default_logger
from streamguard.core.security.constants import REDACTION_MARKER, SENSITIVE_LOG_FIELDS


def redact(
    meta: Any,
    sensitive_fields: Collection[str] = SENSITIVE_LOG_FIELDS,
    marker: str = REDACTION_MARKER,
) -> Any:
    """
    Return a shallow copy of ``meta`` with sensitive top-level values masked.

    Non-mapping values are returned unchanged.
    """
    if not isinstance(meta, Mapping):
        return meta

    redacted = dict(meta)
    for field in sensitive_fields:
        if field in redacted:
            redacted[field] = marker
    return redacted


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class SecureLogger:
    """
    Structured logger that never forwards sensitive metadata values.

    ``error`` is the exception: it always records the causing exception's
    message, stack and type name, since it only feeds the diagnostic sink.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        sensitive_fields: Collection[str] = SENSITIVE_LOG_FIELDS,
    ):
        self._logger = logger or default_logger
        self._sensitive_fields = frozenset(sensitive_fields)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def redact(self, meta: Any) -> Any:
        return redact(meta, self._sensitive_fields)

    def _log(self, level: int, message: str, meta: Any = None) -> None:
        if meta is None:
            self._logger.log(level, "%s", message)
        else:
            self._logger.log(level, "%s | %s", message, self.redact(meta))

    def info(self, message: str, meta: Any = None) -> None:
        self._log(logging.INFO, message, meta)

    def warn(self, message: str, meta: Any = None) -> None:
        self._log(logging.WARNING, message, meta)

    # stdlib spelling
    warning = warn

    def debug(self, message: str, meta: Any = None) -> None:
        self._log(logging.DEBUG, message, meta)

    def error(self, message: str, error: Optional[BaseException] = None) -> None:
        details: dict[str, Any] = {"timestamp": _utc_timestamp()}
        if error is not None:
            details["error"] = {
                "message": str(error),
                "stack": "".join(traceback.format_exception(error)),
                "name": type(error).__name__,
            }
        self._logger.error("%s | %s", message, details)

    def log_request(
        self,
        method: str,
        url: str,
        client_ip: Optional[str],
        status_code: int,
        user_agent: Optional[str] = None,
        response_time_ms: Optional[float] = None,
        request_id: Optional[str] = None,
    ) -> None:
        """Log an API request. Headers and bodies are never included."""
        log_data = {
            "request_id": request_id,
            "method": method,
            "url": url,
            "ip": client_ip,
            "user_agent": user_agent,
            "status_code": status_code,
            "response_time": f"{response_time_ms:.2f}ms" if response_time_ms is not None else None,
            "timestamp": _utc_timestamp(),
        }
        self._logger.info("API Request | %s", log_data)

    def log_security_event(self, event: str, details: Any = None) -> None:
        log_data = {
            "event": event,
            "details": self.redact(details),
            "timestamp": _utc_timestamp(),
        }
        self._logger.warning("Security Event | %s", log_data)


secure_logger = SecureLogger()
