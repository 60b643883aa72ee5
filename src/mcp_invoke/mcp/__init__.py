"""MCP semantic layer: tools/list, tools/call and the legacy direct-call shape."""
