"""MCP server over stdio.

A thin adapter: list_tools publishes TOOL_CATALOG, call_tool forwards to
ToolDispatcher and returns the envelope's data as JSON text. Error
envelopes are raised so the MCP server marks the result isError=true.
"""

from __future__ import annotations

import json
from typing import Any

import mcp.server.stdio
import mcp.types as types
import structlog
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from trialscope import __version__
from trialscope.tools.catalog import TOOL_CATALOG, input_schema
from trialscope.tools.dispatcher import ToolDispatcher

logger = structlog.get_logger()

SERVER_NAME = "trialscope"


class ToolCallFailed(Exception):
    """Carries an error envelope's message back through the MCP server."""


def list_tool_definitions() -> list[types.Tool]:
    return [
        types.Tool(
            name=spec.name.value,
            description=spec.description,
            inputSchema=input_schema(spec),
        )
        for spec in TOOL_CATALOG.values()
    ]


def build_server(dispatcher: ToolDispatcher) -> Server:
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return list_tool_definitions()

    # arguments are validated by the dispatcher, not against inputSchema here
    @server.call_tool(validate_input=False)
    async def handle_call_tool(
        name: str, arguments: dict[str, Any] | None
    ) -> list[types.TextContent]:
        envelope = await dispatcher.call(name, arguments)
        if envelope.is_error:
            raise ToolCallFailed(envelope.data)
        return [types.TextContent(type="text", text=json.dumps(envelope.data, indent=2))]

    return server


async def serve_stdio(dispatcher: ToolDispatcher) -> None:
    """Run the MCP server on stdin/stdout until the client disconnects."""
    server = build_server(dispatcher)
    logger.info("mcp_server_starting", transport="stdio", tools=len(TOOL_CATALOG))
    try:
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )
    finally:
        await dispatcher.aclose()
