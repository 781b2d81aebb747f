"""Error types for md2word-mcp.

Two families live here:

- JSON-RPC protocol errors (``JsonRpcError`` and subclasses). These become an
  ``error`` member in the response envelope and carry the HTTP status the
  transport should use.
- Tool-level errors (``ToolError`` and subclasses). These never leave the tool
  execution boundary as exceptions; they are reported as a successful envelope
  whose result is flagged with ``isError``.
"""

from typing import Any, Dict, Optional

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)


class JsonRpcError(Exception):
    """Base class for errors rendered as a JSON-RPC ``error`` object.

    Attributes:
        code: JSON-RPC error code
        message: Short error message
        data: Optional auxiliary data (included only when not None)
        http_status: HTTP status code used when the error is sent over HTTP
    """

    code: int = INTERNAL_ERROR
    default_message: str = "Internal error"
    http_status: int = 500

    def __init__(self, message: Optional[str] = None, data: Any = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class ParseError(JsonRpcError):
    """Request body is not a JSON object."""

    code = PARSE_ERROR
    default_message = "Parse error"
    http_status = 400


class InvalidParamsError(JsonRpcError):
    code = INVALID_PARAMS
    default_message = "Invalid params"
    http_status = 400


class MethodNotFoundError(JsonRpcError):
    """Unknown JSON-RPC method, or unknown tool name in ``tools/call``."""

    code = METHOD_NOT_FOUND
    default_message = "Method not found"
    http_status = 400


class InternalError(JsonRpcError):
    code = INTERNAL_ERROR
    default_message = "Internal error"
    http_status = 500


class ToolError(Exception):
    """Base class for failures reported inside a tool result."""


class ToolValidationError(ToolError):
    """Tool arguments failed validation.

    Attributes:
        field: Name of the offending argument
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class ConversionError(ToolError):
    """Document conversion failed in the selected engine.

    The underlying exception is chained as ``__cause__``.
    """


def format_size(bytes_count: int) -> str:
    """Format byte count as human-readable size string.

    Args:
        bytes_count: Number of bytes

    Returns:
        Human-readable size string (e.g., "5.2 MB", "1.5 KB")
    """
    if bytes_count < 1024:
        return f"{bytes_count} B"
    elif bytes_count < 1024 * 1024:
        return f"{bytes_count / 1024:.1f} KB"
    elif bytes_count < 1024 * 1024 * 1024:
        return f"{bytes_count / (1024 * 1024):.1f} MB"
    else:
        return f"{bytes_count / (1024 * 1024 * 1024):.1f} GB"
