"""mcp-cli: a generic client for MCP servers over STDIO or a background daemon."""

__version__ = "1.0.0"
