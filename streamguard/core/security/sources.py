"""
Source List Validation

Bounds and filters externally supplied streaming/subtitle source lists
before they are handed to the playback collaborator.
"""

from typing import Any, List, Mapping, Optional

from streamguard import config
from streamguard.core.security.secure_logger import secure_logger
from streamguard.core.security.validation import (
    ContentTypeValidator,
    UrlValidator,
    ValidationError,
    get_content_type_validator,
    get_url_validator,
)


class SourceListValidator:
    """
    Caps a source list at ``max_items`` and drops unsafe descriptors.

    Oversized lists are truncated to their first ``max_items`` elements
    before filtering, so the result keeps the original order and never
    exceeds the cap. A descriptor is kept only if it is a mapping and each
    field it carries (``url``, ``type``, ``language``) passes its check.
    ``type`` is checked only when a content type validator is configured.
    """

    def __init__(
        self,
        max_items: int,
        name: str = "sources",
        url_validator: Optional[UrlValidator] = None,
        content_type_validator: Optional[ContentTypeValidator] = None,
    ):
        self.max_items = max_items
        self.name = name
        self.url_validator = url_validator or get_url_validator()
        self.content_type_validator = content_type_validator

    def _check_source(self, source: Any) -> None:
        if not isinstance(source, Mapping):
            raise ValidationError("Invalid source object")

        url = source.get("url")
        if url is not None and not self.url_validator.validate(url):
            raise ValidationError("Invalid source URL", field="url")

        content_type = source.get("type")
        if (
            self.content_type_validator is not None
            and content_type is not None
            and not self.content_type_validator.validate(content_type)
        ):
            raise ValidationError("Invalid source content type", field="type")

        language = source.get("language")
        if language is not None and not isinstance(language, str):
            raise ValidationError("Invalid source language", field="language")

    def is_valid_source(self, source: Any) -> bool:
        try:
            self._check_source(source)
        except ValidationError as exc:
            secure_logger.warn(f"SourceListValidator: {exc.message}", {"list": self.name, "field": exc.field})
            return False
        except Exception as exc:
            secure_logger.error(f"SourceListValidator: Error validating {self.name} entry", exc)
            return False
        return True

    def validate(self, sources: Any) -> List[Any]:
        if not isinstance(sources, list):
            secure_logger.warn(
                "SourceListValidator: Invalid sources input type",
                {"list": self.name, "type": type(sources).__name__},
            )
            return []

        if len(sources) > self.max_items:
            secure_logger.warn(
                f"SourceListValidator: Too many {self.name}",
                {"count": len(sources), "max": self.max_items},
            )
            sources = sources[:self.max_items]

        return [source for source in sources if self.is_valid_source(source)]


_streaming_validator = SourceListValidator(
    max_items=config.MAX_STREAMING_SOURCES,
    name="streaming sources",
    content_type_validator=get_content_type_validator(),
)
_subtitle_validator = SourceListValidator(
    max_items=config.MAX_SUBTITLE_SOURCES,
    name="subtitle sources",
)


def get_streaming_source_validator() -> SourceListValidator:
    return _streaming_validator


def get_subtitle_source_validator() -> SourceListValidator:
    return _subtitle_validator


def validate_streaming_sources(sources: Any) -> List[Any]:
    """Filter a streaming source list, capped at the streaming maximum."""
    return _streaming_validator.validate(sources)


def validate_subtitle_sources(subtitles: Any) -> List[Any]:
    """Filter a subtitle source list, capped at the subtitle maximum."""
    return _subtitle_validator.validate(subtitles)
