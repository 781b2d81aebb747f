"""Descriptive payloads for the /mcp-info and / endpoints."""

from typing import Any, Dict

from . import PROTOCOL_VERSION, SERVER_DESCRIPTION, SERVER_NAME, __version__
from .config import Settings
from .dispatcher import JSONRPC_VERSION, SERVER_CAPABILITIES
from .tool_registry import MARKDOWN_TO_WORD, ToolRegistry


def mcp_info(settings: Settings, registry: ToolRegistry) -> Dict[str, Any]:
    """Service description: transports, capabilities, tools and request examples."""
    mcp_path = settings.route("/mcp")
    return {
        "name": SERVER_NAME,
        "version": __version__,
        "description": SERVER_DESCRIPTION,
        "protocol": {"version": PROTOCOL_VERSION, "jsonrpc": JSONRPC_VERSION},
        "transports": [
            {
                "type": "sse",
                "url": settings.route("/sse"),
                "deprecated": True,
                "note": "SSE transport is deprecated, use StreamableHttp instead",
            },
            {
                "type": "http",
                "url": mcp_path,
                "method": "POST",
                "contentType": "application/json",
            },
            {
                "type": "streamable-http",
                "url": mcp_path,
                "method": "GET",
                "note": "Recommended transport method",
            },
        ],
        "capabilities": SERVER_CAPABILITIES,
        "tools": registry.list_tool_dicts(),
        "examples": {
            "initialize": {
                "url": mcp_path,
                "method": "POST",
                "body": {
                    "jsonrpc": JSONRPC_VERSION,
                    "id": 1,
                    "method": "initialize",
                    "params": {
                        "protocolVersion": PROTOCOL_VERSION,
                        "capabilities": {},
                        "clientInfo": {"name": "client", "version": "1.0.0"},
                    },
                },
            },
            "listTools": {
                "url": mcp_path,
                "method": "POST",
                "body": {"jsonrpc": JSONRPC_VERSION, "id": 2, "method": "tools/list", "params": {}},
            },
            "callTool": {
                "url": mcp_path,
                "method": "POST",
                "body": {
                    "jsonrpc": JSONRPC_VERSION,
                    "id": 3,
                    "method": "tools/call",
                    "params": {
                        "name": MARKDOWN_TO_WORD,
                        "arguments": {
                            "name": "Test document",
                            "content": "# Title\n\nThis is **test** content.",
                        },
                    },
                },
            },
        },
    }


def service_index(settings: Settings, registry: ToolRegistry) -> Dict[str, Any]:
    route = settings.route
    return {
        "name": SERVER_NAME,
        "description": SERVER_DESCRIPTION,
        "version": __version__,
        "protocol": {"mcp": PROTOCOL_VERSION, "jsonrpc": JSONRPC_VERSION},
        "endpoints": {
            f"GET {route('/sse')}": "MCP SSE endpoint (deprecated)",
            f"GET {route('/mcp')}": "MCP discovery (StreamableHttp)",
            f"POST {route('/mcp')}": "MCP HTTP endpoint (JSON-RPC 2.0)",
            f"POST {route('/tools/markdown_to_word')}": "Simplified REST conversion endpoint",
            f"GET {route('/download/{fileId}')}": "Download a converted file",
            f"GET {route('/health')}": "Service health check",
            f"GET {route('/mcp-info')}": "MCP service information",
            f"GET {route('/docs')}": "Swagger UI",
            "GET /": "API overview",
        },
        "transports": ["SSE", "HTTP"],
        "tools": [
            {"name": tool.name, "description": tool.description}
            for tool in registry.list_tools()
        ],
        "fileExpiryMinutes": settings.file_expiry_minutes,
    }
