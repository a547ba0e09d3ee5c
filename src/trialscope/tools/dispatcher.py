"""Tool dispatch: (tool name, raw arguments) -> ResponseEnvelope.

The dispatcher looks the tool up in TOOL_CATALOG, validates arguments,
runs one upstream search (two, sequentially, for two-phase tools) and
hands the ResultSet to the tool's derived view. Every exception is
caught here and turned into an outcome; nothing escapes a call.

Argument problems are rejected before any network call is attempted.
"""

from __future__ import annotations

import dataclasses
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

import structlog

from trialscope.config import Settings
from trialscope.errors import ClientArgumentError, NotFoundError, UnknownToolError, UpstreamFailure
from trialscope.query.arguments import parse_arguments
from trialscope.registry.ctgov_client import CTGovClient
from trialscope.schema import (
    HardError,
    Ok,
    OutcomeKind,
    ResponseEnvelope,
    SoftError,
    ToolCall,
    ToolOutcome,
)
from trialscope.tools.catalog import get_tool_spec, utc_now
from trialscope.views.derived import resolve_reference

logger = structlog.get_logger()

INTERNAL_ERROR_MESSAGE = "Internal error while running tool"


class ToolDispatcher:
    """Runs tools against one shared CTGovClient.

    Holds no per-call state, so concurrent calls on one instance are safe.
    """

    def __init__(
        self,
        client: CTGovClient | None = None,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        if client is None:
            settings = settings or Settings()
            client = CTGovClient(
                base_url=settings.base_url,
                timeout_seconds=settings.timeout_seconds,
                user_agent=settings.user_agent,
            )
        self._client = client
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> ToolDispatcher:
        return cls(settings=settings)

    async def _execute(self, tool_name: str, arguments: Any) -> dict[str, Any]:
        spec = get_tool_spec(tool_name)
        args = parse_arguments(spec.arguments, arguments)
        call = ToolCall(tool=spec.name, args=args, now=self._clock())

        try:
            results = await self._client.search(spec.compose(args, call.now))
        except UpstreamFailure as exc:
            if spec.not_found_on_404 and exc.status_code == 404:
                raise NotFoundError(f"Study not found: {args.nct_id}") from exc
            raise
        if spec.follow_up is not None:
            reference = resolve_reference(args.nct_id, results)
            call = dataclasses.replace(call, reference=reference)
            results = await self._client.search(spec.follow_up(call))

        return spec.derive(call, results, spec.project)

    async def run(self, tool_name: str, arguments: Any = None) -> ToolOutcome:
        """Run one tool call and classify the result. Never raises."""
        try:
            return Ok(await self._execute(tool_name, arguments))
        except UnknownToolError as exc:
            return HardError(OutcomeKind.UNKNOWN_TOOL, str(exc))
        except ClientArgumentError as exc:
            return HardError(OutcomeKind.INVALID_ARGUMENTS, str(exc))
        except NotFoundError as exc:
            return SoftError(OutcomeKind.NOT_FOUND, str(exc))
        except UpstreamFailure as exc:
            return SoftError(OutcomeKind.UPSTREAM_FAILURE, exc.message)
        except Exception as exc:
            logger.exception("tool_call_crashed", tool=tool_name)
            return HardError(OutcomeKind.INTERNAL_ERROR, f"{INTERNAL_ERROR_MESSAGE}: {exc}")

    async def call(self, tool_name: str, arguments: Any = None) -> ResponseEnvelope:
        """Run a tool and wrap the outcome in a ResponseEnvelope."""
        call_start = time.perf_counter()
        outcome = await self.run(tool_name, arguments)
        latency_ms = (time.perf_counter() - call_start) * 1000

        if isinstance(outcome, Ok):
            logger.info(
                "tool_call_complete",
                tool=tool_name,
                kind=outcome.kind.value,
                latency_ms=f"{latency_ms:.0f}",
            )
        else:
            logger.warning(
                "tool_call_failed",
                tool=tool_name,
                kind=outcome.kind.value,
                error=outcome.message,
                latency_ms=f"{latency_ms:.0f}",
            )
        return ResponseEnvelope.from_outcome(str(tool_name), outcome)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ToolDispatcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
