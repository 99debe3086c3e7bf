"""Clock abstraction for testable expiry decisions.

Every expiry check in :mod:`zoho_projects_mcp.auth` receives an injected
``Clock`` instead of calling ``time.time()`` directly, so tests can pin the
current instant.

Example
-------
>>> from zoho_projects_mcp.auth.clock import default_clock
>>> isinstance(default_clock(), float)
True
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Callable returning *seconds* since the UNIX epoch."""

    def __call__(self) -> float: ...


def default_clock() -> float:
    """Wall-clock time via ``time.time()``."""
    return time.time()
