"""Utility functions related to environment checking."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Final, Tuple

if TYPE_CHECKING:
    from zoho_projects_mcp.config import ZohoConfig

logger = logging.getLogger("zoho-projects-mcp.utils.environment")

_TRUTHY: Final[Tuple[str, ...]] = ("true", "1", "yes", "y", "on")


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def is_verbose_mode() -> bool:
    """Return True if ``MCP_VERBOSE`` is set to a truthy value."""
    return _truthy(os.getenv("MCP_VERBOSE"))


def get_env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Split a comma-separated variable, dropping blanks; *default* when unset."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def get_env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def get_env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


def log_auth_summary(config: ZohoConfig) -> str:
    """Log how the server will authenticate and return the mode name.

    Modes:
      * ``refresh``       – refresh token + client credentials present; expired
                            or rejected tokens are renewed automatically
      * ``static-token``  – only an access token; it stops working when it expires
      * ``unconfigured``  – no token and no way to obtain one; every tool call fails
    """
    mode = config.auth_mode()
    if mode == "refresh":
        initial = "with" if config.access_token else "without"
        logger.info(
            "Using Zoho OAuth refresh flow via %s (%s initial access token)",
            config.accounts_domain,
            initial,
        )
    elif mode == "static-token":
        logger.info(
            "Using static Zoho access token; set ZOHO_REFRESH_TOKEN, ZOHO_CLIENT_ID "
            "and ZOHO_CLIENT_SECRET to enable automatic refresh"
        )
    else:
        logger.warning(
            "Zoho authentication is not configured. Set ZOHO_ACCESS_TOKEN or the "
            "refresh credentials; tool calls will fail until then."
        )

    if not config.portal_id:
        logger.warning("ZOHO_PORTAL_ID is not set; only portal-level tools will work.")
    return mode
