"""Tool implementations exposed through the MCP endpoints."""
