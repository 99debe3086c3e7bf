"""Tests for SessionHeaderMiddleware."""

from __future__ import annotations

import httpx
import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from zoho_projects_mcp.servers.middleware import SessionHeaderMiddleware


async def _echo(request: Request) -> JSONResponse:
    headers = {}
    if "mint" in request.query_params:
        headers["mcp-session-id"] = request.query_params["mint"]
    return JSONResponse({"state_session": request.state.session_id}, headers=headers)


@pytest.fixture
def asgi_app():
    return SessionHeaderMiddleware(Starlette(routes=[Route("/mcp", _echo)]))


@pytest.fixture
async def client(asgi_app):
    transport = httpx.ASGITransport(app=asgi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.anyio
async def test_request_session_is_echoed(client: httpx.AsyncClient):
    resp = await client.get("/mcp", headers={"mcp-session-id": "abc-123"})
    assert resp.headers["x-session-id"] == "abc-123"
    assert resp.json() == {"state_session": "abc-123"}


@pytest.mark.anyio
async def test_minted_session_wins(client: httpx.AsyncClient):
    resp = await client.get("/mcp", params={"mint": "new-session"})
    assert resp.headers["x-session-id"] == "new-session"
    assert resp.json() == {"state_session": None}


@pytest.mark.anyio
async def test_legacy_header_accepted(client: httpx.AsyncClient):
    resp = await client.get("/mcp", headers={"X-Session-ID": "legacy"})
    assert resp.headers["x-session-id"] == "legacy"


@pytest.mark.anyio
async def test_no_session_no_header(client: httpx.AsyncClient):
    resp = await client.get("/mcp")
    assert "x-session-id" not in resp.headers


@pytest.mark.anyio
async def test_sse_query_session_is_echoed(client: httpx.AsyncClient):
    resp = await client.get("/mcp", params={"session_id": "sse-1"})
    assert resp.headers["x-session-id"] == "sse-1"
    assert resp.json() == {"state_session": "sse-1"}
