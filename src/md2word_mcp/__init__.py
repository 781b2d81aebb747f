"""
md2word-mcp: MCP document service for Markdown to Word conversion.

This package exposes a ``markdown_to_word`` tool through the Model Context
Protocol (JSON-RPC 2.0 over HTTP, with plain JSON or Server-Sent-Event
framing), a simplified REST endpoint, and temporary download links for the
produced .docx files. Generated files are tracked in memory and removed once
they expire.
"""

__version__ = "1.0.0"

SERVER_NAME = "mcp-document-service"
SERVER_DESCRIPTION = (
    "MCP service: Markdown to Word document conversion with SSE and HTTP transports"
)
PROTOCOL_VERSION = "2024-11-05"
