"""
Tests for content metadata sanitization.

Run with: pytest tests/test_sanitization.py -v
"""

import copy

import pytest

from streamguard.core.security import (
    DANGEROUS_METADATA_FIELDS,
    MetadataSanitizer,
    sanitize_content_metadata,
)


class TestDangerousFields:
    """Denylisted keys are removed at every depth."""

    def test_removes_script_content_and_handlers(self):
        metadata = {"title": "X", "description": "<script>alert(1)</script>", "onload": "y"}
        assert sanitize_content_metadata(metadata) == {"title": "X", "description": ""}

    def test_removes_every_denylisted_field(self):
        metadata = {field: "value" for field in DANGEROUS_METADATA_FIELDS}
        metadata["keep"] = "ok"
        assert sanitize_content_metadata(metadata) == {"keep": "ok"}

    def test_removes_fields_regardless_of_value(self):
        metadata = {"script": None, "eval": 0, "setTimeout": {"a": 1}, "Function": [1], "title": "t"}
        assert sanitize_content_metadata(metadata) == {"title": "t"}

    def test_field_match_is_exact(self):
        metadata = {"OnLoad": "x", "scripts": "y", "function": "z"}
        assert sanitize_content_metadata(metadata) == metadata

    def test_removes_nested_fields(self):
        metadata = {"info": {"onclick": "x", "name": "<script>x</script>ok", "deeper": {"onerror": 1}}}
        assert sanitize_content_metadata(metadata) == {"info": {"name": "ok", "deeper": {}}}


class TestStringScrubbing:
    """Dangerous substrings are stripped from string values."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("javascript:alert", "alert"),
            ("JavaScript:void", "void"),
            ("vbscript:msgbox", "msgbox"),
            ("DATA:text/plain", "text/plain"),
            ('<img onerror="x">', '<img "x">'),
            ("eval (1)", "1)"),
            ("new Function(body)", "new body)"),
            ("setTimeout(f, 10)", "f, 10)"),
            ("setInterval (f)", "f)"),
            ('<script type="text/javascript">bad()</script>after', "after"),
            ("plain text", "plain text"),
            ("", ""),
        ],
    )
    def test_scrubs_tokens(self, value, expected):
        assert sanitize_content_metadata({"field": value}) == {"field": expected}

    def test_spliced_tokens_are_removed(self):
        result = sanitize_content_metadata({"field": "javajavascript:script:alert"})
        assert result == {"field": "alert"}

    def test_truncates_long_strings(self):
        result = sanitize_content_metadata({"field": "a" * 10_050})
        assert result["field"] == "a" * 10_000

    def test_truncates_after_scrubbing(self):
        result = sanitize_content_metadata({"field": "javascript:" + "a" * 10_000})
        assert result["field"] == "a" * 10_000

    def test_custom_max_length(self):
        sanitizer = MetadataSanitizer(max_string_length=5)
        assert sanitizer.sanitize({"field": "abcdefgh"}) == {"field": "abcde"}


class TestTreeShapes:
    """Handling of nested lists, scalars and unsupported values."""

    def test_scalars_pass_through(self):
        metadata = {"n": 1, "f": 1.5, "b": True, "z": None}
        assert sanitize_content_metadata(metadata) == metadata

    def test_nested_lists_are_sanitized(self):
        metadata = {"tags": ["javascript:a", {"onload": 1, "t": "b"}, 3, None, ["data:c"]]}
        assert sanitize_content_metadata(metadata) == {"tags": ["a", {"t": "b"}, 3, None, ["c"]]}

    def test_tuples_become_lists(self):
        assert sanitize_content_metadata({"pair": ("a", "b")}) == {"pair": ["a", "b"]}

    def test_unsupported_values_are_dropped(self):
        assert sanitize_content_metadata({"when": object(), "ok": "x"}) == {"ok": "x"}

    @pytest.mark.parametrize("root", [None, [], [{"a": 1}], "string", 5, True])
    def test_rejects_non_mapping_root(self, root):
        assert sanitize_content_metadata(root) == {}

    def test_does_not_mutate_input(self):
        metadata = {"title": "javascript:x", "onload": "y", "nested": {"script": "z"}}
        original = copy.deepcopy(metadata)
        result = sanitize_content_metadata(metadata)
        assert metadata == original
        assert result is not metadata

    def test_excessive_depth_fails_closed(self):
        metadata = {}
        node = metadata
        for _ in range(5000):
            node["next"] = {}
            node = node["next"]
        assert sanitize_content_metadata(metadata) == {}


class TestCycles:
    """Any repeated container makes the whole result empty."""

    def test_self_reference(self):
        metadata = {"title": "X"}
        metadata["self"] = metadata
        assert sanitize_content_metadata(metadata) == {}

    def test_deep_cycle_through_list(self):
        metadata = {"title": "X", "a": {"b": []}}
        metadata["a"]["b"].append(metadata)
        assert sanitize_content_metadata(metadata) == {}

    def test_self_referencing_list(self):
        items = ["x"]
        items.append(items)
        assert sanitize_content_metadata({"title": "X", "items": items}) == {}

    def test_shared_reference_counts_as_cycle(self):
        shared = {"name": "n"}
        assert sanitize_content_metadata({"a": shared, "b": shared}) == {}

    def test_equal_but_distinct_containers_are_fine(self):
        metadata = {"a": {"name": "n"}, "b": {"name": "n"}, "c": [], "d": []}
        assert sanitize_content_metadata(metadata) == metadata

    def test_has_repeated_container(self):
        metadata = {"a": [1, 2]}
        assert MetadataSanitizer.has_repeated_container(metadata) is False
        metadata["b"] = metadata["a"]
        assert MetadataSanitizer.has_repeated_container(metadata) is True


class TestIdempotence:
    """Sanitizing twice gives the same result as sanitizing once."""

    @pytest.mark.parametrize(
        "metadata",
        [
            {"title": "X", "description": "<script>alert(1)</script>", "onload": "y"},
            {"field": "javajavascript:script:alert"},
            {"field": "ononclick==x", "other": "evaleval((1)"},
            {"field": "<scr<script></script>ipt>x</script>"},
            {"long": "data:" * 3000},
            {"tags": ["javascript:a", {"setTimeout": 1, "t": "vbscript:b"}], "n": 1},
        ],
    )
    def test_idempotent(self, metadata):
        once = sanitize_content_metadata(metadata)
        assert sanitize_content_metadata(once) == once
