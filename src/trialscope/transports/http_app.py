"""HTTP surface over the tool dispatcher (FastAPI).

Routes:
  GET  /health            liveness probe
  GET  /tools             tool names, descriptions and input schemas
  POST /api/{tool_name}   JSON body is the argument bag; responds with the envelope

Envelope -> status code: Ok and soft errors 200, invalid arguments 400,
unknown tool 404, internal error 500.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trialscope import __version__
from trialscope.config import Settings
from trialscope.schema import HardError, OutcomeKind, ResponseEnvelope
from trialscope.tools.catalog import TOOL_CATALOG, input_schema
from trialscope.tools.dispatcher import ToolDispatcher

logger = structlog.get_logger()

SERVICE_NAME = "Clinical Trials MCP Server"

_STATUS_BY_KIND: dict[OutcomeKind, int] = {
    OutcomeKind.INVALID_ARGUMENTS: 400,
    OutcomeKind.UNKNOWN_TOOL: 404,
    OutcomeKind.INTERNAL_ERROR: 500,
}


def status_for(envelope: ResponseEnvelope) -> int:
    if envelope.error_kind is None:
        return 200
    return _STATUS_BY_KIND.get(envelope.error_kind, 200)


def create_app(
    dispatcher: ToolDispatcher | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the app. A dispatcher created here is closed on shutdown."""
    owns_dispatcher = dispatcher is None
    if dispatcher is None:
        dispatcher = ToolDispatcher(settings=settings or Settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("http_server_starting", tools=len(TOOL_CATALOG))
        yield
        if owns_dispatcher:
            await dispatcher.aclose()
        logger.info("http_server_stopped")

    app = FastAPI(
        title="trialscope",
        description="ClinicalTrials.gov search tools over HTTP",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS", "GET"],
        allow_headers=["Content-Type"],
    )

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": __version__,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @app.get("/tools")
    async def tools():
        return {
            "tools": [
                {
                    "name": spec.name.value,
                    "description": spec.description,
                    "endpoint": f"/api/{spec.name.value}",
                    "method": "POST",
                    "inputSchema": input_schema(spec),
                }
                for spec in TOOL_CATALOG.values()
            ]
        }

    @app.post("/api/{tool_name}")
    async def call_tool(tool_name: str, request: Request):
        body = await request.body()
        try:
            arguments = json.loads(body) if body.strip() else None
        except ValueError:
            envelope = ResponseEnvelope.from_outcome(
                tool_name,
                HardError(OutcomeKind.INVALID_ARGUMENTS, "Request body must be valid JSON"),
            )
        else:
            envelope = await app.state.dispatcher.call(tool_name, arguments)
        return JSONResponse(status_code=status_for(envelope), content=envelope.to_wire())

    return app
