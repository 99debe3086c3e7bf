"""Refresh-token exchange against the Zoho accounts server.

The exchange is a single form-encoded POST to
``{accounts_domain}/oauth/v2/token``.  On success the new access token is
applied to the :class:`~zoho_projects_mcp.auth.models.CredentialState` before
:meth:`TokenRefresher.refresh` returns.

Concurrent refreshes of the same state are single-flight: callers queue on a
lock and a caller that finds the token already replaced while it waited
returns without contacting the accounts server again.  Back-to-back calls
from a single caller still perform one exchange each.

Only the token *length* and the issuer-reported lifetime are ever logged.
"""

from __future__ import annotations

import logging

import anyio
import httpx

from zoho_projects_mcp.auth.clock import Clock, default_clock
from zoho_projects_mcp.auth.errors import RefreshError
from zoho_projects_mcp.auth.models import CredentialState

_LOG = logging.getLogger("zoho-projects-mcp.auth.refresh")

_BODY_PREVIEW = 500


class TokenRefresher:
    """Exchange the refresh token of one :class:`CredentialState`."""

    def __init__(self, http: httpx.AsyncClient, *, clock: Clock = default_clock) -> None:
        self._http = http
        self._clock = clock
        self._lock = anyio.Lock()
        self._warned_unrefreshable = False

    async def refresh(self, state: CredentialState) -> bool:
        """Refresh *state* in place.

        Returns
        -------
        bool
            ``False`` when refresh is structurally unavailable (nothing was
            sent), ``True`` once *state* holds a freshly issued token.

        Raises
        ------
        RefreshError
            The exchange failed or the reply was malformed.
        """
        if not state.can_refresh():
            # a static token goes stale every call once past its hour; warn once
            log = _LOG.debug if self._warned_unrefreshable else _LOG.warning
            log("Cannot refresh token: missing refresh token, client ID, or client secret")
            self._warned_unrefreshable = True
            return False

        seen_generation = state.generation
        async with self._lock:
            if state.generation != seen_generation:
                _LOG.debug("Token already refreshed by a concurrent call")
                return True
            await self._exchange(state)
            return True

    async def _exchange(self, state: CredentialState) -> None:
        payload = {
            "refresh_token": state.refresh_token,
            "client_id": state.client_id,
            "client_secret": state.client_secret,  # noqa: S105
            "grant_type": "refresh_token",
        }
        try:
            resp = await self._http.post(state.token_url, data=payload)
        except httpx.HTTPError as exc:
            _LOG.error("Error refreshing access token: %s", exc)
            raise RefreshError(status=None, body=str(exc)) from exc

        if not resp.is_success:
            _LOG.error("Token endpoint returned %s", resp.status_code)
            raise RefreshError(status=resp.status_code, body=resp.text[:_BODY_PREVIEW])

        try:
            data = resp.json()
        except ValueError:
            raise RefreshError(
                status=resp.status_code,
                body=resp.text[:_BODY_PREVIEW],
                message="Token response is not valid JSON",
            ) from None

        access_token = data.get("access_token") if isinstance(data, dict) else None
        expires_in = data.get("expires_in") if isinstance(data, dict) else None
        if not isinstance(access_token, str) or not access_token:
            raise RefreshError(
                status=resp.status_code,
                body=resp.text[:_BODY_PREVIEW],
                message="Token response missing access_token",
            )
        # bool is an int subclass; reject it explicitly
        if isinstance(expires_in, bool) or not isinstance(expires_in, int) or expires_in <= 0:
            raise RefreshError(
                status=resp.status_code,
                body=resp.text[:_BODY_PREVIEW],
                message="Token response has missing or invalid expires_in",
            )

        state.apply(access_token, expires_in, self._clock())
        _LOG.info(
            "Access token refreshed successfully. Expires in %s seconds.", expires_in
        )
