"""
Markdown to Word tool for md2word-mcp.

This module provides the single execution path behind the ``markdown_to_word``
tool. The JSON-RPC dispatcher, the simplified REST endpoint and the FastMCP
session server all call ToolExecutor.call() and read the structured
ToolCallResult it returns.

Flow: validate arguments -> convert (pandoc or built-in) -> register artifact.
Validation and conversion failures are returned as an error result; they are
never raised to the caller.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from mcp.types import CallToolResult, TextContent

from ..artifact_store import ArtifactStore
from ..config import Settings
from ..converters import ConversionEngine
from ..errors import ConversionError, ToolError, format_size
from ..logging_config import get_logger
from ..tool_registry import MARKDOWN_TO_WORD, ToolRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    """Where a converted document can be fetched, and until when."""

    artifact_id: str
    download_url: str
    filename: str
    stored_filename: str
    size_bytes: int
    expires_at: datetime


@dataclass(frozen=True)
class ToolCallResult:
    """Outcome of one tool call.

    Attributes:
        text: Human-readable summary (or error message)
        is_error: True when the tool itself failed
        conversion: Structured download details on success
    """

    text: str
    is_error: bool = False
    conversion: Optional[ConversionResult] = None

    def to_call_tool_result(self) -> CallToolResult:
        return CallToolResult(
            content=[TextContent(type="text", text=self.text)],
            isError=self.is_error,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Result payload for a ``tools/call`` response envelope."""
        return self.to_call_tool_result().model_dump(
            mode="json", by_alias=True, exclude_none=True
        )


class ToolExecutor:
    """
    Runs registered tools against the conversion engine and artifact store.

    Usage:
        executor = ToolExecutor(registry, engine, store, settings)
        result = executor.call("markdown_to_word", {"name": "Report", "content": "# Hi"})
        if not result.is_error:
            print(result.conversion.download_url)
    """

    def __init__(
        self,
        registry: ToolRegistry,
        engine: ConversionEngine,
        store: ArtifactStore,
        settings: Settings,
    ):
        self.registry = registry
        self.engine = engine
        self.store = store
        self.settings = settings
        self._handlers: Dict[str, Callable[[Dict[str, Any]], ToolCallResult]] = {
            MARKDOWN_TO_WORD: self._markdown_to_word,
        }

    def has_tool(self, name: str) -> bool:
        return name in self.registry and name in self._handlers

    def call(self, name: str, arguments: Any) -> ToolCallResult:
        """
        Validate and execute a tool call.

        Args:
            name: Registered tool name
            arguments: Raw argument object from the caller

        Returns:
            ToolCallResult; tool-level failures have is_error=True

        Raises:
            KeyError: If no tool with this name is registered
        """
        if not self.has_tool(name):
            raise KeyError(name)

        try:
            validated = self.registry.validate(name, arguments)
            return self._handlers[name](validated)
        except ToolError as e:
            logger.warning(
                "tool_call_failed",
                tool=name,
                error=str(e),
                error_type=type(e).__name__,
            )
            prefix = "Conversion failed" if isinstance(e, ConversionError) else "Invalid arguments"
            return ToolCallResult(text=f"{prefix}: {e}", is_error=True)

    def _markdown_to_word(self, args: Dict[str, Any]) -> ToolCallResult:
        name = args["name"]
        content = args["content"]

        logger.info("markdown_to_word_started", name=name, content_length=len(content))

        artifact_id = self.store.new_id()
        stored_filename = f"{name}_{artifact_id}.docx"
        storage_path, size_bytes = self.engine.convert(content, stored_filename)

        artifact = self.store.register(name, storage_path, artifact_id=artifact_id)
        expires_at = artifact.expires_at

        conversion = ConversionResult(
            artifact_id=artifact_id,
            download_url=self.settings.download_url(artifact_id),
            filename=f"{name}.docx",
            stored_filename=stored_filename,
            size_bytes=size_bytes,
            expires_at=expires_at,
        )

        text = "\n".join([
            "Document converted successfully!",
            "",
            f"**Document name:** {name}",
            f"**File size:** {format_size(size_bytes)} ({size_bytes} bytes)",
            f"**Expires:** {expires_at.isoformat()} "
            f"(deleted automatically after {self.settings.file_expiry_minutes} minutes)",
            "",
            "Supported formatting:",
            "- Headings (H1-H6)",
            "- Bold and italic text",
            "- Ordered and unordered lists",
            "- Code blocks and inline code",
            "- Paragraphs and line breaks",
            "- Horizontal rules",
            "",
            f"**Download link:** {conversion.download_url}",
        ])

        logger.info(
            "markdown_to_word_completed",
            name=name,
            artifact_id=artifact_id,
            size_bytes=size_bytes,
        )
        return ToolCallResult(text=text, conversion=conversion)
