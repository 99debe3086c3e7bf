"""Per-session Zoho clients.

Every MCP session owns an independent :class:`CredentialState` (and therefore
its own refresh lifecycle).  Clients are kept in a :class:`cachetools.TTLCache`
and evicted after ``session_ttl_seconds`` without use; a later call from an
evicted session simply starts over from the configured credentials.

All clients of a registry share one ``httpx.AsyncClient`` connection pool.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx
from cachetools import TTLCache

from zoho_projects_mcp.auth.clock import Clock, default_clock
from zoho_projects_mcp.client import ZohoClient
from zoho_projects_mcp.config import ZohoConfig

logger = logging.getLogger("zoho-projects-mcp.servers.sessions")

STDIO_SESSION_ID = "stdio"
_MAX_SESSIONS = 1024


def build_http_client(config: ZohoConfig) -> httpx.AsyncClient:
    """Return the shared outbound HTTP client for *config*."""
    return httpx.AsyncClient(timeout=httpx.Timeout(config.http_timeout))


class SessionRegistry:
    """Map MCP session ids to their :class:`ZohoClient`."""

    def __init__(
        self,
        config: ZohoConfig,
        *,
        http_client_factory: Callable[[ZohoConfig], httpx.AsyncClient] = build_http_client,
        clock: Clock = default_clock,
        maxsize: int = _MAX_SESSIONS,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self._clock = clock
        self._http_client_factory = http_client_factory
        self._http: httpx.AsyncClient | None = None
        self._clients: TTLCache[str, ZohoClient] = TTLCache(
            maxsize=maxsize, ttl=config.session_ttl_seconds, timer=timer
        )

    def __len__(self) -> int:
        return len(self._clients)

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = self._http_client_factory(self.config)
        return self._http

    def get(self, session_id: str) -> ZohoClient:
        """Return the client of *session_id*, creating it on first use."""
        client = self._clients.get(session_id)
        if client is None:
            client = ZohoClient(
                self.config.new_credential_state(clock=self._clock),
                self.http,
                clock=self._clock,
                session_id=session_id,
                portal_id=self.config.portal_id or None,
            )
            logger.info("New MCP session created: %s", session_id)
        # re-insert so the TTL slides with activity
        self._clients[session_id] = client
        return client

    async def aclose(self) -> None:
        self._clients.clear()
        if self._http is not None:
            await self._http.aclose()
            self._http = None
