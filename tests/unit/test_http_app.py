"""Tests for the FastAPI surface (ASGI in-process, async via asyncio.run)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from trialscope.registry.ctgov_client import CTGovClient
from trialscope.schema import ResultSet
from trialscope.tools.dispatcher import ToolDispatcher
from trialscope.transports.http_app import create_app


@pytest.fixture
def ctgov(condition_response):
    client = AsyncMock(spec=CTGovClient)
    client.search = AsyncMock(return_value=ResultSet.from_response(condition_response))
    return client


def _request(app, method: str, url: str, **kwargs):
    async def _run():
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as http:
            return await http.request(method, url, **kwargs)

    return asyncio.run(_run())


class TestMetaRoutes:
    def test_health(self, ctgov):
        resp = _request(create_app(ToolDispatcher(ctgov)), "GET", "/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert "timestamp" in body

    def test_tools(self, ctgov):
        resp = _request(create_app(ToolDispatcher(ctgov)), "GET", "/tools")
        tools = resp.json()["tools"]
        assert len(tools) == 17
        condition = next(t for t in tools if t["name"] == "search_by_condition")
        assert condition["endpoint"] == "/api/search_by_condition"
        assert "condition" in condition["inputSchema"]["required"]


class TestToolRoute:
    def test_ok(self, ctgov):
        app = create_app(ToolDispatcher(ctgov))
        resp = _request(app, "POST", "/api/search_by_condition", json={"condition": "diabetes"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["isError"] is False
        assert body["data"]["totalCount"] == 450

    def test_invalid_arguments_is_400(self, ctgov):
        app = create_app(ToolDispatcher(ctgov))
        resp = _request(app, "POST", "/api/get_study_details", json={})
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        ctgov.search.assert_not_awaited()

    def test_unknown_tool_is_404(self, ctgov):
        resp = _request(create_app(ToolDispatcher(ctgov)), "POST", "/api/nope", json={})
        assert resp.status_code == 404
        assert resp.json()["data"] == "Unknown tool: nope"

    def test_not_found_is_200_with_error_flag(self, ctgov):
        ctgov.search = AsyncMock(return_value=ResultSet())
        app = create_app(ToolDispatcher(ctgov))
        resp = _request(app, "POST", "/api/get_study_details", json={"nctId": "NCT12345678"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["isError"] is True
        assert body["errorKind"] == "NOT_FOUND"

    def test_empty_body_is_empty_arguments(self, ctgov):
        resp = _request(create_app(ToolDispatcher(ctgov)), "POST", "/api/search_studies")
        assert resp.status_code == 200
        assert resp.json()["data"]["searchCriteria"] == {}

    def test_malformed_body_is_400(self, ctgov):
        app = create_app(ToolDispatcher(ctgov))
        resp = _request(
            app,
            "POST",
            "/api/search_studies",
            content=b"{oops",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["errorKind"] == "INVALID_ARGUMENTS"
