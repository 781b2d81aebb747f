"""Tests for tool descriptors and argument validation."""

from __future__ import annotations

import pytest

from md2word_mcp.errors import ToolValidationError
from md2word_mcp.tool_registry import (
    MARKDOWN_TO_WORD,
    MAX_CONTENT_LENGTH,
    MAX_NAME_LENGTH,
    default_registry,
    validate_markdown_to_word,
)


class TestValidation:
    def test_valid_arguments_pass_through(self):
        args = {"name": "Report", "content": "# Title", "extra": "ignored"}
        assert validate_markdown_to_word(args) == {"name": "Report", "content": "# Title"}

    @pytest.mark.parametrize(
        "args, field",
        [
            ({"content": "x"}, "name"),
            ({"name": "", "content": "x"}, "name"),
            ({"name": 5, "content": "x"}, "name"),
            ({"name": "a" * (MAX_NAME_LENGTH + 1), "content": "x"}, "name"),
            ({"name": "Report"}, "content"),
            ({"name": "Report", "content": ""}, "content"),
            ({"name": "Report", "content": ["# Title"]}, "content"),
            ({"name": "Report", "content": "x" * (MAX_CONTENT_LENGTH + 1)}, "content"),
        ],
    )
    def test_invalid_arguments_name_the_field(self, args, field):
        with pytest.raises(ToolValidationError) as exc_info:
            validate_markdown_to_word(args)
        assert exc_info.value.field == field
        assert field in str(exc_info.value)

    @pytest.mark.parametrize("char", list('<>:"/\\|?*') + ["\x00", "\n"])
    def test_unsafe_name_characters_rejected(self, char):
        with pytest.raises(ToolValidationError) as exc_info:
            validate_markdown_to_word({"name": f"bad{char}name", "content": "x"})
        assert exc_info.value.field == "name"

    def test_limits_are_inclusive(self):
        args = {"name": "a" * MAX_NAME_LENGTH, "content": "x" * MAX_CONTENT_LENGTH}
        assert validate_markdown_to_word(args) == args

    def test_whitespace_only_content_allowed(self):
        args = {"name": "Report", "content": "   \n  "}
        assert validate_markdown_to_word(args) == args

    def test_unicode_name_allowed(self):
        assert validate_markdown_to_word({"name": "Bericht Q3 Übersicht", "content": "x"})

    def test_non_object_arguments(self):
        with pytest.raises(ToolValidationError) as exc_info:
            validate_markdown_to_word(["Report", "# Title"])
        assert exc_info.value.field == "arguments"


class TestRegistry:
    def test_default_registry_lists_markdown_to_word(self):
        registry = default_registry()

        assert registry.names() == [MARKDOWN_TO_WORD]
        assert MARKDOWN_TO_WORD in registry
        assert "other" not in registry

    def test_get_returns_descriptor(self):
        registry = default_registry()

        descriptor = registry.get(MARKDOWN_TO_WORD)
        assert descriptor is not None
        assert descriptor.name == MARKDOWN_TO_WORD
        assert descriptor.validate({"name": "a", "content": "b"}) == {"name": "a", "content": "b"}
        assert registry.get("other") is None

    def test_tool_dicts_are_json_ready(self):
        (tool,) = default_registry().list_tool_dicts()

        assert tool["name"] == MARKDOWN_TO_WORD
        assert tool["description"]
        schema = tool["inputSchema"]
        assert schema["type"] == "object"
        assert schema["additionalProperties"] is False
        assert schema["properties"]["content"]["maxLength"] == MAX_CONTENT_LENGTH

    def test_validate_unknown_tool(self):
        with pytest.raises(KeyError):
            default_registry().validate("other", {})
