"""Token lifecycle core.

Transport-agnostic building blocks for calling the Zoho Projects API with a
refreshable OAuth access token.

Sub-modules
-----------
clock
    Test-friendly time abstraction.
models
    Mutable credential state and immutable request descriptors.
errors
    Exception types surfaced to the MCP tool layer.
refresh
    Refresh-token exchange against the Zoho accounts server.

All public objects are re-exported here for convenience.
"""

from __future__ import annotations

from .clock import Clock, default_clock  # noqa: F401
from .errors import ApiError, ConfigurationError, RefreshError, ZohoError  # noqa: F401
from .models import (  # noqa: F401
    ASSUMED_TOKEN_TTL_SECONDS,
    SAFETY_MARGIN_SECONDS,
    CredentialState,
    RequestDescriptor,
)
from .refresh import TokenRefresher  # noqa: F401

__all__ = [
    # clock
    "Clock",
    "default_clock",
    # errors
    "ZohoError",
    "ConfigurationError",
    "RefreshError",
    "ApiError",
    # models
    "ASSUMED_TOKEN_TTL_SECONDS",
    "SAFETY_MARGIN_SECONDS",
    "CredentialState",
    "RequestDescriptor",
    # refresh
    "TokenRefresher",
]
