"""
Tool registry for md2word-mcp.

Holds the static description of every invocable tool as an ``mcp.types.Tool``
(name, description, JSON schema for the arguments) together with a validator
for its arguments. The same registry answers ``tools/list`` and validates
``tools/call`` arguments before any work is done.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from mcp.types import Tool

from .errors import ToolValidationError

MARKDOWN_TO_WORD = "markdown_to_word"

MAX_NAME_LENGTH = 100
MAX_CONTENT_LENGTH = 100_000

# Characters that are not allowed in a file name on common filesystems
UNSAFE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass(frozen=True)
class ToolDescriptor:
    tool: Tool
    validate: Callable[[Mapping[str, Any]], Dict[str, Any]]

    @property
    def name(self) -> str:
        return self.tool.name


def _require_string(args: Mapping[str, Any], field: str, max_length: int) -> str:
    value = args.get(field)
    if value is None:
        raise ToolValidationError(field, f"Missing required parameter: {field} (string)")
    if not isinstance(value, str):
        raise ToolValidationError(
            field, f"Parameter '{field}' must be a string, got {type(value).__name__}"
        )
    if not value:
        raise ToolValidationError(field, f"Parameter '{field}' must not be empty")
    if len(value) > max_length:
        raise ToolValidationError(
            field,
            f"Parameter '{field}' is too long ({len(value)} characters, "
            f"maximum is {max_length})",
        )
    return value


def validate_markdown_to_word(args: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate ``markdown_to_word`` arguments.

    Args:
        args: Raw argument object from the caller

    Returns:
        Dict with the validated ``name`` and ``content``

    Raises:
        ToolValidationError: Naming the first offending field
    """
    if not isinstance(args, Mapping):
        raise ToolValidationError("arguments", "Tool arguments must be an object")

    name = _require_string(args, "name", MAX_NAME_LENGTH)
    if UNSAFE_NAME_CHARS.search(name):
        raise ToolValidationError(
            "name",
            "Parameter 'name' contains characters that are not allowed in a file name "
            '(< > : " / \\ | ? * or control characters)',
        )

    content = _require_string(args, "content", MAX_CONTENT_LENGTH)
    return {"name": name, "content": content}


MARKDOWN_TO_WORD_TOOL = Tool(
    name=MARKDOWN_TO_WORD,
    description=(
        "Convert Markdown text to a Word document and return a temporary download link. "
        "Supports headings, bold, italic, lists, code blocks, inline code, paragraphs, "
        "line breaks and horizontal rules."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "name": {
                "type": "string",
                "description": "Document name, used as the base of the generated Word file name",
                "minLength": 1,
                "maxLength": MAX_NAME_LENGTH,
            },
            "content": {
                "type": "string",
                "description": (
                    "Markdown content to convert: headings (#), bold (**), italic (*), "
                    "lists (-), code blocks and more"
                ),
                "minLength": 1,
                "maxLength": MAX_CONTENT_LENGTH,
            },
        },
        "required": ["name", "content"],
        "additionalProperties": False,
    },
)


class ToolRegistry:
    """Static table of tools, keyed by name."""

    def __init__(self, descriptors: List[ToolDescriptor]):
        self._tools: Dict[str, ToolDescriptor] = {d.name: d for d in descriptors}

    def list_tools(self) -> List[Tool]:
        return [d.tool for d in self._tools.values()]

    def list_tool_dicts(self) -> List[Dict[str, Any]]:
        """Tool descriptors as JSON-ready dicts (camelCase keys, unset fields omitted)."""
        return [
            tool.model_dump(mode="json", by_alias=True, exclude_none=True)
            for tool in self.list_tools()
        ]

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def validate(self, tool_name: str, args: Any) -> Dict[str, Any]:
        """
        Validate arguments for a registered tool.

        Raises:
            KeyError: If the tool is not registered
            ToolValidationError: If the arguments are invalid
        """
        return self._tools[tool_name].validate(args)


def default_registry() -> ToolRegistry:
    return ToolRegistry([ToolDescriptor(MARKDOWN_TO_WORD_TOOL, validate_markdown_to_word)])
