"""Exception types raised by the authenticated request core.

These are lightweight, **data-carrying** exceptions so the MCP tool layer can
turn them into user-facing tool errors.  ``to_payload`` never includes tokens
or client secrets.
"""

from __future__ import annotations

from typing import Any


class ZohoError(RuntimeError):
    """Base class for failures surfaced by the Zoho client."""

    kind: str = "zoho_error"

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-serialisable payload **without secrets**."""
        return {"error": self.kind, "message": str(self)}


class ConfigurationError(ZohoError):
    """A required setting is missing at call time."""

    kind = "configuration_error"

    def __init__(self, setting: str, message: str | None = None) -> None:
        super().__init__(
            message
            or f"Zoho {setting.removeprefix('ZOHO_').lower().replace('_', ' ')} not configured. "
            f"Set {setting} environment variable."
        )
        self.setting: str = setting

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["setting"] = self.setting
        return payload


class _HttpFailure(ZohoError):
    """Failure that carries an HTTP status (when one was received) and body."""

    prefix: str = "Zoho error"

    def __init__(
        self,
        *,
        status: int | None,
        body: str = "",
        message: str | None = None,
    ) -> None:
        if message is None:
            shown = status if status is not None else "no response"
            message = f"{self.prefix}: {shown} - {body}"
        super().__init__(message)
        self.status: int | None = status
        self.body: str = body

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["status"] = self.status
        payload["body"] = self.body
        return payload


class RefreshError(_HttpFailure):
    """The refresh-token exchange failed (network, non-2xx or malformed reply)."""

    kind = "refresh_error"
    prefix = "Failed to refresh access token"


class ApiError(_HttpFailure):
    """The resource API answered with a non-2xx status after any retry."""

    kind = "api_error"
    prefix = "Zoho API error"
