"""ASGI middleware for the HTTP transports.

:class:`SessionHeaderMiddleware` echoes the MCP session id of every response
in an ``X-Session-ID`` header (clients that cannot read ``mcp-session-id``
use it) and exposes the id on ``request.state.session_id``.

Written as plain ASGI rather than ``BaseHTTPMiddleware`` so streamed (SSE)
responses pass through untouched.
"""

from __future__ import annotations

import logging

from starlette.datastructures import MutableHeaders, QueryParams
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("zoho-projects-mcp.servers.middleware")

SESSION_ID_HEADER = "X-Session-ID"
_MCP_SESSION_HEADER = b"mcp-session-id"
_LEGACY_SESSION_HEADER = b"x-session-id"


class SessionHeaderMiddleware:
    """Attach ``X-Session-ID`` to responses carrying an MCP session."""

    def __init__(self, app: ASGIApp, header_name: str = SESSION_ID_HEADER) -> None:
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        raw = headers.get(_MCP_SESSION_HEADER) or headers.get(_LEGACY_SESSION_HEADER)
        request_session = raw.decode("latin-1").strip() if raw else None
        if not request_session:
            # SSE message posts carry the session in the query string
            request_session = (
                QueryParams(scope.get("query_string", b"")).get("session_id") or None
            )

        scope_copy: Scope = dict(scope)
        scope_copy.setdefault("state", {})
        scope_copy["state"] = dict(scope_copy["state"])
        scope_copy["state"]["session_id"] = request_session

        async def send_with_session(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = MutableHeaders(scope=message)
                # a session minted by this response wins over the request's
                session_id = response_headers.get("mcp-session-id") or request_session
                if session_id and self.header_name not in response_headers:
                    response_headers[self.header_name] = session_id
            try:
                await send(message)
            except (ConnectionResetError, BrokenPipeError) as e:
                logger.debug(
                    f"Client disconnected during response: {type(e).__name__}: {e}"
                )

        await self.app(scope_copy, receive, send_with_session)
