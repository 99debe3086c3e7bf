"""Dependency providers for tool functions.

Provides :func:`get_zoho_client`, which resolves the :class:`ZohoClient` owned
by the MCP session of the current tool call.
"""

from __future__ import annotations

import logging
import uuid

from fastmcp import Context
from fastmcp.server.dependencies import get_http_request
from starlette.requests import Request

from zoho_projects_mcp.client import ZohoClient
from zoho_projects_mcp.servers.context import MainAppContext
from zoho_projects_mcp.servers.sessions import STDIO_SESSION_ID

logger = logging.getLogger("zoho-projects-mcp.servers.dependencies")

SESSION_HEADERS: tuple[str, ...] = ("mcp-session-id", "x-session-id")
# SSE clients post to /messages/?session_id=...
SESSION_QUERY_PARAM = "session_id"


def _session_id_from_request(request: Request) -> str | None:
    for header in SESSION_HEADERS:
        value = request.headers.get(header)
        if value and value.strip():
            return value.strip()
    value = request.query_params.get(SESSION_QUERY_PARAM)
    if value and value.strip():
        return value.strip()
    return None


def resolve_session_id() -> str:
    """Return the MCP session id of the current call.

    Streamable HTTP identifies sessions by header, SSE by the ``session_id``
    query parameter.  Outside an HTTP request (stdio, in-memory) there is
    exactly one session.  An HTTP request carrying neither gets a session of
    its own.
    """
    try:
        request: Request = get_http_request()
    except RuntimeError:
        return STDIO_SESSION_ID
    session_id = _session_id_from_request(request)
    if session_id is None:
        session_id = f"anonymous-{uuid.uuid4().hex}"
        logger.debug("HTTP request without session id; using %s", session_id)
    return session_id


def get_app_context(ctx: Context) -> MainAppContext:
    lifespan_ctx_dict = ctx.request_context.lifespan_context  # type: ignore[union-attr]
    app_lifespan_ctx: MainAppContext | None = (
        lifespan_ctx_dict.get("app_lifespan_context")
        if isinstance(lifespan_ctx_dict, dict)
        else None
    )
    if app_lifespan_ctx is None:
        logger.error("Zoho configuration could not be resolved from lifespan context.")
        raise ValueError(
            "Zoho client not available. Ensure server is configured correctly."
        )
    return app_lifespan_ctx


async def get_zoho_client(ctx: Context) -> ZohoClient:
    """Return the ZohoClient of the session issuing the current tool call.

    Args:
        ctx: The FastMCP context.

    Returns:
        ZohoClient bound to this session's credential state.

    Raises:
        ValueError: If the server lifespan did not provide a configuration.
    """
    app_ctx = get_app_context(ctx)
    session_id = resolve_session_id()
    logger.debug("get_zoho_client: session=%s", session_id)
    return app_ctx.sessions.get(session_id)
