"""
Metadata Sanitization Module

Recursively strips dangerous fields and substrings from untrusted metadata
before it reaches a player.

Rules, applied to a mapping root:

- Any container (mapping or list) reachable twice from the root, whether
  through a cycle or a shared reference, makes the whole result ``{}``.
- Keys in the dangerous-field denylist are removed regardless of value.
- String values are scrubbed with the ordered pattern list until no pattern
  matches, then truncated to the maximum string length.
- Mapping values are sanitized recursively with the same rules.
- Lists nested inside a mapping stay lists; each element follows the same
  value rules (strings scrubbed, mappings and lists recursed).
- ``None``, booleans and numbers pass through unchanged. Values of any
  other type are dropped.

A bare list or scalar at the root is rejected with ``{}``.
"""

import re
from typing import Any, Collection, Dict, List, Mapping, Optional, Sequence, Union

from streamguard import config
from streamguard.core.security.constants import DANGEROUS_METADATA_FIELDS, METADATA_SCRUB_PATTERNS
from streamguard.core.security.secure_logger import secure_logger

MetadataScalar = Union[None, bool, int, float, str]
MetadataValue = Union[MetadataScalar, List["MetadataValue"], Dict[str, "MetadataValue"]]
MetadataTree = Dict[str, MetadataValue]

_DROP = object()


class MetadataSanitizer:
    """Sanitizes untrusted metadata trees. Stateless and thread-safe."""

    def __init__(
        self,
        max_string_length: int = config.MAX_METADATA_STRING_LENGTH,
        dangerous_fields: Collection[Any] = DANGEROUS_METADATA_FIELDS,
        scrub_patterns: Sequence[re.Pattern] = METADATA_SCRUB_PATTERNS,
    ):
        self.max_string_length = max_string_length
        self.dangerous_fields = frozenset(dangerous_fields)
        self.scrub_patterns = tuple(scrub_patterns)

    @staticmethod
    def has_repeated_container(root: Any) -> bool:
        """Return True if any mapping or list is reachable more than once."""
        seen: set[int] = set()
        stack = [root]
        while stack:
            node = stack.pop()
            if isinstance(node, Mapping):
                children = node.values()
            elif isinstance(node, list):
                children = node
            elif isinstance(node, tuple):
                # Immutable and possibly interned, so only their contents are tracked
                stack.extend(node)
                continue
            else:
                continue
            if id(node) in seen:
                return True
            seen.add(id(node))
            stack.extend(children)
        return False

    def scrub_string(self, value: str) -> str:
        # Repeat until stable: removing one token can splice a new one together
        while True:
            scrubbed = value
            for pattern in self.scrub_patterns:
                scrubbed = pattern.sub("", scrubbed)
            if scrubbed == value:
                return value
            value = scrubbed

    def _sanitize_mapping(self, mapping: Mapping) -> MetadataTree:
        sanitized: MetadataTree = {}
        for key, value in mapping.items():
            if key in self.dangerous_fields:
                secure_logger.warn("MetadataSanitizer: Removed dangerous field", {"field": key})
                continue
            clean = self._sanitize_value(key, value)
            if clean is not _DROP:
                sanitized[key] = clean
        return sanitized

    def _sanitize_value(self, key: Any, value: Any) -> Any:
        if value is None or isinstance(value, (bool, int, float)):
            return value
        if isinstance(value, str):
            clean = self.scrub_string(value)
            if len(clean) > self.max_string_length:
                secure_logger.warn(
                    "MetadataSanitizer: Truncated long string field",
                    {"field": key, "original_length": len(value)},
                )
                clean = clean[:self.max_string_length]
            return clean
        if isinstance(value, Mapping):
            return self._sanitize_mapping(value)
        if isinstance(value, (list, tuple)):
            items = (self._sanitize_value(key, item) for item in value)
            return [item for item in items if item is not _DROP]

        secure_logger.warn(
            "MetadataSanitizer: Dropped unsupported value",
            {"field": key, "type": type(value).__name__},
        )
        return _DROP

    def sanitize(self, metadata: Any) -> MetadataTree:
        """Return a sanitized copy of ``metadata``, or ``{}`` if rejected."""
        try:
            if not isinstance(metadata, Mapping):
                secure_logger.warn(
                    "MetadataSanitizer: Invalid metadata type for sanitization",
                    {"type": type(metadata).__name__},
                )
                return {}

            if self.has_repeated_container(metadata):
                secure_logger.warn("MetadataSanitizer: Circular reference detected in metadata")
                return {}

            return self._sanitize_mapping(metadata)
        except Exception as exc:
            secure_logger.error("MetadataSanitizer: Error sanitizing metadata", exc)
            return {}


_metadata_sanitizer = MetadataSanitizer()


def get_metadata_sanitizer() -> MetadataSanitizer:
    """Get the default metadata sanitizer."""
    return _metadata_sanitizer


def sanitize_content_metadata(metadata: Any, sanitizer: Optional[MetadataSanitizer] = None) -> MetadataTree:
    """Sanitize untrusted content metadata with the default rules."""
    return (sanitizer or _metadata_sanitizer).sanitize(metadata)
