"""Logging helpers.

All records go to **stderr**: with the stdio transport, stdout carries the
MCP JSON-RPC stream and must stay clean.

The session adapter restricts which contextual attributes are attached to
log records so that secrets never leak into them.  Only these
*non-sensitive* fields are injected:

- ``session_id``  – MCP session the record belongs to (first 8 chars kept)
- ``portal_id``   – Zoho portal the session talks to

Usage
-----
>>> from zoho_projects_mcp.utils.logging import get_session_logger
>>> log = get_session_logger(session_id="3f1c2a9e-...", portal_id="123")
>>> log.info("Sending request")
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Mapping, MutableMapping, TextIO

ROOT_LOGGER_NAME = "zoho-projects-mcp"
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.WARNING, stream: TextIO | None = None) -> logging.Logger:
    """Configure the package root logger and return it."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Return *value* with everything but the last *keep_chars* masked."""
    if not value:
        return ""
    if len(value) <= keep_chars * 2:
        return "*" * len(value)
    return "*" * (len(value) - keep_chars) + value[-keep_chars:]


class _SessionLoggerAdapter(logging.LoggerAdapter):
    """Inject whitelisted session context into log records."""

    extra_keys = ("session_id", "portal_id")

    def __init__(self, logger: logging.Logger, extra: Mapping[str, Any] | None = None):
        extra_clean: MutableMapping[str, Any] = {}
        for k in self.extra_keys:
            if not extra or extra.get(k) is None:
                continue
            if k == "session_id":
                extra_clean[k] = str(extra[k])[:8]
            else:
                extra_clean[k] = extra[k]
        super().__init__(logger, extra_clean)

    def process(self, msg: str, kwargs: MutableMapping[str, Any]):
        if kwargs.get("extra") is None:
            kwargs["extra"] = {}
        # call-site extras win
        for k, v in self.extra.items():
            kwargs["extra"].setdefault(k, v)
        if "session_id" in self.extra:
            msg = f"[session={self.extra['session_id']}] {msg}"
        return msg, kwargs


def get_session_logger(
    *,
    base_logger_name: str = f"{ROOT_LOGGER_NAME}.client",
    session_id: str | None = None,
    portal_id: str | None = None,
) -> logging.LoggerAdapter:
    """Return a LoggerAdapter pre-filled with session context."""
    return _SessionLoggerAdapter(
        logging.getLogger(base_logger_name),
        {"session_id": session_id, "portal_id": portal_id},
    )
