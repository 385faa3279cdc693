"""MCP server for the OMG language service."""
