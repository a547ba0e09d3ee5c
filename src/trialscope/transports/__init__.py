"""Transport adapters (MCP stdio, HTTP) around ToolDispatcher."""
