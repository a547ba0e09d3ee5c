"""Async ClinicalTrials.gov API v2 client.

Wraps the public REST API at https://clinicaltrials.gov/api/v2/studies.
One GET per query, bounded by a timeout. There is no retry and no rate
limiting here: a failure is reported to the caller as-is.

The client knows nothing about tools. It takes a composed UpstreamQuery
and hands back a ResultSet; projection happens in trialscope.views.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from trialscope import __version__
from trialscope.errors import UpstreamFailure
from trialscope.schema import ResultSet, UpstreamQuery

logger = structlog.get_logger()

CTGOV_BASE = "https://clinicaltrials.gov/api/v2"
STUDIES_PATH = "/studies"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = f"trialscope/{__version__}"
ERROR_PREFIX = "Clinical Trials API error"


def upstream_error(detail: str, status_code: int | None = None) -> UpstreamFailure:
    return UpstreamFailure(f"{ERROR_PREFIX}: {detail}", status_code=status_code)


def _error_detail(resp: httpx.Response) -> str:
    """Upstream diagnostic if the body carries one, else a generic status line."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping) and body.get("message"):
        return str(body["message"])
    return f"Request failed with status code {resp.status_code}"


def _check_search_shape(body: Mapping[str, Any]) -> None:
    """studies must be a list and totalCount an integer, when present."""
    studies = body.get("studies")
    total = body.get("totalCount")
    if studies is not None and not isinstance(studies, list):
        raise upstream_error("unexpected response shape: studies is not a list")
    if total is not None and (isinstance(total, bool) or not isinstance(total, int)):
        raise upstream_error("unexpected response shape: totalCount is not an integer")


class CTGovClient:
    """Async HTTP client for ClinicalTrials.gov API v2.

    Holds one httpx.AsyncClient; instantiate once per process and reuse
    across calls. ``transport`` is for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str = CTGOV_BASE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={"Accept": "application/json", "User-Agent": user_agent},
            transport=transport,
        )

    async def _get(self, path: str, params: dict[str, Any]) -> Mapping[str, Any]:
        try:
            resp = await self._http.get(path, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("ctgov_timeout", path=path)
            raise upstream_error(f"timeout of request exceeded ({exc})") from exc
        except httpx.HTTPError as exc:
            logger.warning("ctgov_transport_error", path=path, error=str(exc))
            raise upstream_error(str(exc) or type(exc).__name__) from exc

        if not resp.is_success:
            detail = _error_detail(resp)
            logger.warning("ctgov_bad_status", path=path, status=resp.status_code, detail=detail)
            raise upstream_error(detail, status_code=resp.status_code)

        try:
            body = resp.json()
        except ValueError as exc:
            raise upstream_error("response body is not valid JSON", resp.status_code) from exc
        if not isinstance(body, Mapping):
            raise upstream_error("unexpected response shape", resp.status_code)
        return body

    async def search(self, query: UpstreamQuery) -> ResultSet:
        """Run one /studies search. Raises UpstreamFailure on any failure."""
        params = query.as_params()
        # httpx renders True as "true", which is what the registry expects
        logger.debug("ctgov_search", params={k: v for k, v in params.items() if k != "format"})
        raw = await self._get(STUDIES_PATH, params)
        _check_search_shape(raw)
        results = ResultSet.from_response(raw)
        logger.debug(
            "ctgov_search_complete",
            returned=len(results.records),
            total_count=results.total_count,
        )
        return results

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> CTGovClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
