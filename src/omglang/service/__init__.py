"""Service layer shared by the REST API and MCP server."""
