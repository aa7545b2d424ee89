"""
Media routes.

Pre-playback checks for externally supplied metadata and source lists.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body

from streamguard.core.security import (
    sanitize_content_metadata,
    validate_streaming_sources,
    validate_subtitle_sources,
)
from streamguard.schemas import SourceListsRequest, SourceListsResponse

router = APIRouter(prefix="/media", tags=["Media"])


@router.post("/metadata")
async def sanitize_metadata(metadata: Any = Body(...)) -> Dict[str, Any]:
    """Return the sanitized form of untrusted content metadata."""
    return sanitize_content_metadata(metadata)


@router.post("/sources", response_model=SourceListsResponse)
async def validate_sources(payload: SourceListsRequest) -> SourceListsResponse:
    """Filter streaming and subtitle sources before playback."""
    return SourceListsResponse(
        sources=validate_streaming_sources(payload.sources),
        subtitles=validate_subtitle_sources(payload.subtitles),
    )
