"""
Pydantic models for request/response validation.

Response bodies here mirror the fixed shapes the security layer emits at the
HTTP boundary.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from streamguard.core.security import (
    INVALID_INPUT_ERROR,
    INVALID_INPUT_MESSAGE,
    RATE_LIMIT_MESSAGE,
)


# -----------------------------------------------------------------------------
# Base Models
# -----------------------------------------------------------------------------

class BaseSchema(BaseModel):
    """Base schema with common configuration."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        str_min_length=0,
    )


# -----------------------------------------------------------------------------
# Media Requests
# -----------------------------------------------------------------------------

class SourceListsRequest(BaseModel):
    """Externally supplied source lists. Entries are validated, not parsed."""
    sources: Any = Field(default_factory=list, description="Streaming source descriptors")
    subtitles: Any = Field(default_factory=list, description="Subtitle source descriptors")


class SourceListsResponse(BaseModel):
    sources: List[Dict[str, Any]] = Field(default_factory=list)
    subtitles: List[Dict[str, Any]] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Error Responses
# -----------------------------------------------------------------------------

class RateLimitExceededResponse(BaseSchema):
    model_config = ConfigDict(populate_by_name=True)

    error: str = RATE_LIMIT_MESSAGE
    retry_after: str = Field(..., alias="retryAfter")


class InvalidInputResponse(BaseSchema):
    error: str = INVALID_INPUT_ERROR
    message: str = INVALID_INPUT_MESSAGE


# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------

class HealthResponse(BaseSchema):
    status: str
    version: str
    timestamp: datetime
    tracked_clients: Optional[int] = None
