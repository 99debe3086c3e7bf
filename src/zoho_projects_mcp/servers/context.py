from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zoho_projects_mcp.config import ZohoConfig
    from zoho_projects_mcp.servers.sessions import SessionRegistry


@dataclass(frozen=True)
class MainAppContext:
    """
    Context holding the Zoho configuration loaded from environment variables
    at server startup, plus the registry of per-session clients built from it.
    """

    config: ZohoConfig
    sessions: SessionRegistry
