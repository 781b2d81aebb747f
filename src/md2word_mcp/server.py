"""
FastMCP session server for md2word-mcp.

The stateless JSON-RPC endpoint (POST /mcp) is handled by ProtocolDispatcher.
Clients that still use the deprecated session-based SSE transport (GET /sse +
POST /messages/) are served by a FastMCP instance exposing the same
``markdown_to_word`` tool, backed by the same ToolExecutor.
"""

from typing import Annotated

import anyio
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.server.sse import SseServerTransport
from pydantic import Field

from . import SERVER_DESCRIPTION, SERVER_NAME
from .connections import LiveConnections
from .logging_config import get_logger
from .tool_registry import (
    MARKDOWN_TO_WORD,
    MARKDOWN_TO_WORD_TOOL,
    MAX_CONTENT_LENGTH,
    MAX_NAME_LENGTH,
)
from .tools.markdown_to_word import ToolExecutor

logger = get_logger(__name__)


def create_mcp_server(executor: ToolExecutor) -> FastMCP:
    """
    Create the FastMCP server and register the conversion tool.

    Args:
        executor: Shared tool execution path

    Returns:
        FastMCP instance (not started)
    """
    mcp = FastMCP(SERVER_NAME, instructions=SERVER_DESCRIPTION)

    @mcp.tool(name=MARKDOWN_TO_WORD, description=MARKDOWN_TO_WORD_TOOL.description)
    def markdown_to_word_tool(
        name: Annotated[
            str,
            Field(
                description="Document name, used as the base of the generated Word file name",
                min_length=1,
                max_length=MAX_NAME_LENGTH,
            ),
        ],
        content: Annotated[
            str,
            Field(
                description="Markdown content to convert",
                min_length=1,
                max_length=MAX_CONTENT_LENGTH,
            ),
        ],
    ) -> str:
        """
        Convert Markdown text to a Word document.

        Returns:
            Summary with document size, expiry time and download link

        Raises:
            ToolError: If validation or conversion fails (reported as isError)
        """
        result = executor.call(MARKDOWN_TO_WORD, {"name": name, "content": content})
        if result.is_error:
            raise ToolError(result.text)
        return result.text

    return mcp


class LegacySseEndpoint:
    """
    ASGI endpoint for the deprecated SSE transport.

    Each connection runs a full MCP session on the FastMCP server and is
    registered in LiveConnections for its lifetime. Shutdown releases it by
    cancelling the session's cancel scope.
    """

    def __init__(
        self,
        mcp: FastMCP,
        transport: SseServerTransport,
        connections: LiveConnections,
        recommended_path: str,
    ):
        self.mcp = mcp
        self.transport = transport
        self.connections = connections
        self.recommended_path = recommended_path

    async def __call__(self, scope, receive, send) -> None:
        logger.warning("sse_endpoint_deprecated", recommended=self.recommended_path)

        server = self.mcp._mcp_server
        with anyio.CancelScope() as cancel_scope:
            with self.connections.track("sse", close=cancel_scope.cancel):
                async with self.transport.connect_sse(scope, receive, send) as (
                    read_stream,
                    write_stream,
                ):
                    await server.run(
                        read_stream,
                        write_stream,
                        server.create_initialization_options(),
                    )
