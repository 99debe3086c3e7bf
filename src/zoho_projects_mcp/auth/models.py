"""Credential state and request descriptors used by the Zoho client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Literal

# Subtracted from the issuer's ``expires_in`` so refresh happens early.
SAFETY_MARGIN_SECONDS: Final[int] = 300
# Lifetime assumed for a token supplied via configuration.
ASSUMED_TOKEN_TTL_SECONDS: Final[int] = 3600

HttpMethod = Literal["GET", "POST", "PATCH", "PUT", "DELETE"]


@dataclass(slots=True)
class CredentialState:
    """Mutable bearer-token state owned by exactly one MCP session.

    The access token is opaque; ``expires_at`` is only ever derived from the
    issuer-reported lifetime.  ``generation`` increments on every
    :meth:`apply` so concurrent refreshers can tell that someone else already
    replaced the token.
    """

    access_token: str
    expires_at: float
    api_domain: str
    accounts_domain: str
    refresh_token: str = ""
    client_id: str = ""
    client_secret: str = ""
    generation: int = field(default=0, compare=False)

    @property
    def base_url(self) -> str:
        return f"{self.api_domain.rstrip('/')}/api/v3"

    @property
    def token_url(self) -> str:
        return f"{self.accounts_domain.rstrip('/')}/oauth/v2/token"

    def is_stale(self, now: float) -> bool:
        """Return *True* once *now* reached ``expires_at``."""
        return now >= self.expires_at

    def can_refresh(self) -> bool:
        """Return *True* if refresh token, client id and secret are all set."""
        return bool(self.refresh_token and self.client_id and self.client_secret)

    def apply(self, new_token: str, expires_in: int, now: float) -> None:
        """Install a freshly issued token."""
        self.access_token = new_token
        self.expires_at = now + max(expires_in - SAFETY_MARGIN_SECONDS, 0)
        self.generation += 1


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """One outbound call to the resource API.

    ``endpoint`` is relative to ``/api/v3`` and already interpolated (it may
    carry a query string).  ``is_retry`` marks the single reactive retry.
    """

    endpoint: str
    method: HttpMethod = "GET"
    body: dict[str, Any] | None = None
    is_retry: bool = False

    @property
    def sends_body(self) -> bool:
        return self.body is not None and self.method in ("POST", "PATCH", "PUT")

    def as_retry(self) -> RequestDescriptor:
        return RequestDescriptor(
            endpoint=self.endpoint, method=self.method, body=self.body, is_retry=True
        )
