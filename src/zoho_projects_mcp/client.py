"""Authenticated request executor for the Zoho Projects v3 API.

:class:`ZohoClient` is the single choke point for resource calls.  Per call:

1. refresh proactively when the token is stale (failure is tolerated, the
   possibly-stale token is tried anyway);
2. fail fast with :class:`ConfigurationError` when no token is available;
3. send the request with ``Authorization: Zoho-oauthtoken <token>``;
4. on ``401`` refresh once and retry once, never more.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from zoho_projects_mcp.auth.clock import Clock, default_clock
from zoho_projects_mcp.auth.errors import ApiError, ConfigurationError, RefreshError
from zoho_projects_mcp.auth.models import CredentialState, HttpMethod, RequestDescriptor
from zoho_projects_mcp.auth.refresh import TokenRefresher
from zoho_projects_mcp.utils.logging import get_session_logger, mask_sensitive

_BODY_PREVIEW = 2000


class ZohoClient:
    """Execute :class:`RequestDescriptor` objects against one credential state."""

    def __init__(
        self,
        state: CredentialState,
        http: httpx.AsyncClient,
        *,
        clock: Clock = default_clock,
        refresher: TokenRefresher | None = None,
        session_id: str | None = None,
        portal_id: str | None = None,
    ) -> None:
        self.state = state
        self._http = http
        self._clock = clock
        self.refresher = refresher or TokenRefresher(http, clock=clock)
        self._log = get_session_logger(session_id=session_id, portal_id=portal_id)

    async def request(
        self,
        endpoint: str,
        method: HttpMethod = "GET",
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Shortcut for :meth:`execute` with a fresh descriptor."""
        return await self.execute(RequestDescriptor(endpoint=endpoint, method=method, body=body))

    async def execute(self, descriptor: RequestDescriptor) -> Any:
        """Send *descriptor* and return the decoded JSON body.

        Raises
        ------
        ConfigurationError
            No access token is available; nothing was sent.
        ApiError
            Non-2xx answer after the optional refresh-and-retry, or a 2xx
            answer whose body is not JSON.
        httpx.HTTPError
            Transport failure (DNS, connection refused, timeout).
        """
        if self.state.is_stale(self._clock()):
            try:
                await self.refresher.refresh(self.state)
            except RefreshError as exc:
                self._log.warning("Proactive token refresh failed, using current token: %s", exc)

        if not self.state.access_token:
            raise ConfigurationError("ZOHO_ACCESS_TOKEN")

        resp = await self._send(descriptor)
        if resp.is_success:
            return self._decode(resp)

        if (
            resp.status_code == 401
            and not descriptor.is_retry
            and self.state.can_refresh()
        ):
            self._log.warning("Received 401 error, attempting token refresh...")
            try:
                await self.refresher.refresh(self.state)
            except RefreshError as exc:
                self._log.error("Token refresh failed: %s", exc)
            else:
                return await self.execute(descriptor.as_retry())

        raise ApiError(status=resp.status_code, body=resp.text[:_BODY_PREVIEW])

    async def _send(self, descriptor: RequestDescriptor) -> httpx.Response:
        url = f"{self.state.base_url}{descriptor.endpoint}"
        headers = {
            "Authorization": f"Zoho-oauthtoken {self.state.access_token}",
            "Content-Type": "application/json",
        }
        content = json.dumps(descriptor.body) if descriptor.sends_body else None
        self._log.debug(
            "%s %s (retry=%s, token=%s)",
            descriptor.method,
            url,
            descriptor.is_retry,
            mask_sensitive(self.state.access_token),
        )
        return await self._http.request(descriptor.method, url, headers=headers, content=content)

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if not resp.content.strip():
            return None
        try:
            return resp.json()
        except ValueError:
            raise ApiError(
                status=resp.status_code,
                body=resp.text[:_BODY_PREVIEW],
                message=f"Zoho API returned a non-JSON body (status {resp.status_code})",
            ) from None
