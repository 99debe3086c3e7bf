"""Configuration for the Zoho Projects MCP server."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final

from zoho_projects_mcp.auth.clock import Clock, default_clock
from zoho_projects_mcp.auth.errors import ConfigurationError
from zoho_projects_mcp.auth.models import ASSUMED_TOKEN_TTL_SECONDS, CredentialState
from zoho_projects_mcp.utils.environment import get_env_float, get_env_int, get_env_list

DEFAULT_API_DOMAIN: Final[str] = "https://projectsapi.zoho.com"
DEFAULT_ACCOUNTS_DOMAIN: Final[str] = "https://accounts.zoho.com"
DEFAULT_HTTP_PORT: Final[int] = 3001
DEFAULT_ALLOWED_ORIGINS: Final[tuple[str, ...]] = ("http://localhost:3000",)


@dataclass(frozen=True)
class ZohoConfig:
    """Process-wide settings loaded once at startup.

    Each MCP session derives its own :class:`CredentialState` from this
    config via :meth:`new_credential_state`; the config itself is never
    mutated by token refreshes.
    """

    access_token: str = ""
    portal_id: str = ""
    api_domain: str = DEFAULT_API_DOMAIN
    refresh_token: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    accounts_domain: str = DEFAULT_ACCOUNTS_DOMAIN
    http_timeout: float = 30.0
    http_port: int = DEFAULT_HTTP_PORT
    allowed_origins: tuple[str, ...] = DEFAULT_ALLOWED_ORIGINS
    allowed_hosts: tuple[str, ...] = ()
    session_ttl_seconds: int = 3600

    @classmethod
    def from_env(cls) -> ZohoConfig:
        """Create the configuration from ``ZOHO_*`` and server environment variables."""
        return cls(
            access_token=os.getenv("ZOHO_ACCESS_TOKEN", ""),
            portal_id=os.getenv("ZOHO_PORTAL_ID", ""),
            api_domain=(os.getenv("ZOHO_API_DOMAIN") or DEFAULT_API_DOMAIN).rstrip("/"),
            refresh_token=os.getenv("ZOHO_REFRESH_TOKEN", ""),
            client_id=os.getenv("ZOHO_CLIENT_ID", ""),
            client_secret=os.getenv("ZOHO_CLIENT_SECRET", ""),
            accounts_domain=(
                os.getenv("ZOHO_ACCOUNTS_DOMAIN") or DEFAULT_ACCOUNTS_DOMAIN
            ).rstrip("/"),
            http_timeout=get_env_float("ZOHO_HTTP_TIMEOUT", 30.0),
            http_port=get_env_int("HTTP_PORT", DEFAULT_HTTP_PORT),
            allowed_origins=get_env_list("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS),
            allowed_hosts=get_env_list("ALLOWED_HOSTS", ()),
            session_ttl_seconds=get_env_int("MCP_SESSION_TTL_SECONDS", 3600),
        )

    def can_refresh(self) -> bool:
        return bool(self.refresh_token and self.client_id and self.client_secret)

    def auth_mode(self) -> str:
        if self.can_refresh():
            return "refresh"
        if self.access_token:
            return "static-token"
        return "unconfigured"

    def require_portal_id(self) -> str:
        if not self.portal_id:
            raise ConfigurationError("ZOHO_PORTAL_ID")
        return self.portal_id

    def new_credential_state(self, *, clock: Clock = default_clock) -> CredentialState:
        """Build a fresh, session-owned credential state.

        A configured token is assumed valid for an hour.  Without one, the
        state starts stale so the first call refreshes when it can.
        """
        now = clock()
        expires_at = now + ASSUMED_TOKEN_TTL_SECONDS if self.access_token else now
        return CredentialState(
            access_token=self.access_token,
            expires_at=expires_at,
            api_domain=self.api_domain,
            accounts_domain=self.accounts_domain,
            refresh_token=self.refresh_token,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )
