"""
Error Sanitization

Projects any internal error into a fixed, information-free external shape.
Full detail goes to the secure logger only.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from streamguard.core.security.constants import GENERIC_ERROR_MESSAGE, GENERIC_ERROR_STATUS
from streamguard.core.security.secure_logger import SecureLogger, secure_logger


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SanitizedError:
    """External error shape. Never carries the original message or stack."""
    message: str = GENERIC_ERROR_MESSAGE
    status: int = GENERIC_ERROR_STATUS
    timestamp: str = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def secure_error_handler(error: BaseException, logger: Optional[SecureLogger] = None) -> SanitizedError:
    """Log ``error`` in full and return the generic external error."""
    (logger or secure_logger).error("Error occurred", error)
    return SanitizedError()
