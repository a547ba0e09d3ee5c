"""CLI commands: list tools, run one tool, or serve the catalog.

  trialscope tools
  trialscope call search_by_condition --args '{"condition": "diabetes"}'
  trialscope serve-stdio
  trialscope serve-http --port 5000
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click
import structlog

from trialscope.config import Settings, load_settings
from trialscope.logging_setup import configure_logging
from trialscope.schema import ResponseEnvelope
from trialscope.tools.catalog import TOOL_CATALOG
from trialscope.tools.dispatcher import ToolDispatcher

logger = structlog.get_logger()

_config_option = click.option(
    "--config", "config_path", type=click.Path(exists=True), default=None,
    help="YAML settings file",
)


def _setup(config_path: str | None) -> Settings:
    settings = load_settings(config_path)
    configure_logging(settings.log_level)
    return settings


def _parse_args_option(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--args") from exc
    if not isinstance(parsed, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")
    return parsed


async def _call_once(settings: Settings, tool_name: str, arguments: dict[str, Any]) -> ResponseEnvelope:
    async with ToolDispatcher(settings=settings) as dispatcher:
        return await dispatcher.call(tool_name, arguments)


@click.command("tools")
@_config_option
def tools_cmd(config_path: str | None):
    """List the available tools."""
    _setup(config_path)
    for spec in TOOL_CATALOG.values():
        click.echo(f"{spec.name.value:<32} {spec.description}")


@click.command("call")
@click.argument("tool_name")
@click.option("--args", "raw_args", default=None, help="Tool arguments as a JSON object")
@_config_option
def call_cmd(tool_name: str, raw_args: str | None, config_path: str | None):
    """Run one tool and print its response envelope as JSON."""
    settings = _setup(config_path)
    arguments = _parse_args_option(raw_args)
    envelope = asyncio.run(_call_once(settings, tool_name, arguments))
    click.echo(json.dumps(envelope.to_wire(), indent=2))
    if not envelope.success:
        sys.exit(1)


@click.command("serve-stdio")
@_config_option
def serve_stdio_cmd(config_path: str | None):
    """Serve the tools as an MCP server over stdin/stdout."""
    from trialscope.transports.mcp_stdio import serve_stdio

    settings = _setup(config_path)
    try:
        asyncio.run(serve_stdio(ToolDispatcher(settings=settings)))
    except KeyboardInterrupt:
        logger.info("mcp_server_stopped")


@click.command("serve-http")
@click.option("--host", default=None, help="Bind address (overrides config)")
@click.option("--port", type=int, default=None, help="Bind port (overrides config)")
@_config_option
def serve_http_cmd(host: str | None, port: int | None, config_path: str | None):
    """Serve the tools over HTTP."""
    import uvicorn

    from trialscope.transports.http_app import create_app

    settings = _setup(config_path)
    app = create_app(settings=settings)
    uvicorn.run(app, host=host or settings.host, port=port or settings.port, log_level="warning")
