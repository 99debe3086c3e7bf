"""Main FastMCP server setup for Zoho Projects integration."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Literal

from fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from zoho_projects_mcp import __version__
from zoho_projects_mcp.config import ZohoConfig
from zoho_projects_mcp.utils.environment import log_auth_summary

from .context import MainAppContext
from .middleware import SESSION_ID_HEADER, SessionHeaderMiddleware
from .projects import register_project_tools
from .sessions import SessionRegistry

logger = logging.getLogger("zoho-projects-mcp.server.main")

SERVER_NAME = "Zoho Projects MCP Server"
SERVER_VERSION = __version__


@asynccontextmanager
async def main_lifespan(app: FastMCP[MainAppContext]) -> AsyncIterator[dict]:
    logger.info("Zoho Projects MCP server lifespan starting...")
    registry: SessionRegistry | None = getattr(app, "session_registry", None)
    if registry is None:
        config = ZohoConfig.from_env()
        registry = SessionRegistry(config)
        if isinstance(app, ZohoProjectsMCP):
            app.session_registry = registry
    else:
        config = registry.config
    log_auth_summary(config)

    app_context = MainAppContext(config=config, sessions=registry)
    try:
        yield {"app_lifespan_context": app_context}
    except Exception as e:
        logger.error(f"Error during lifespan: {e}", exc_info=True)
        raise
    finally:
        logger.info("Zoho Projects MCP server lifespan shutdown complete.")


class ZohoProjectsMCP(FastMCP[MainAppContext]):
    """FastMCP server owning the per-session Zoho clients."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        # Created by the first lifespan run; shared by every session after that
        self.session_registry: SessionRegistry | None = None
        self.transport_name: str = "stdio"
        self.endpoint_path: str = "/mcp"

    async def serve(self, **run_kwargs: Any) -> None:
        """Run the server, then close the outbound HTTP pool shared by all sessions."""
        try:
            await self.run_async(**run_kwargs)
        finally:
            if self.session_registry is not None:
                await self.session_registry.aclose()
                logger.info("Closed shared Zoho HTTP client.")

    @property
    def active_sessions(self) -> int:
        return len(self.session_registry) if self.session_registry else 0

    def http_app(
        self,
        path: str | None = None,
        middleware: list[Middleware] | None = None,
        transport: Literal["streamable-http", "http", "sse"] = "streamable-http",
        **kwargs: Any,
    ) -> "Starlette":
        config = (
            self.session_registry.config if self.session_registry else ZohoConfig.from_env()
        )
        final_middleware_list = [
            Middleware(
                CORSMiddleware,
                allow_origins=list(config.allowed_origins),
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
                expose_headers=["mcp-session-id", SESSION_ID_HEADER],
            ),
            Middleware(SessionHeaderMiddleware),
        ]
        if config.allowed_hosts:
            final_middleware_list.insert(
                0, Middleware(TrustedHostMiddleware, allowed_hosts=list(config.allowed_hosts))
            )
        if middleware:
            final_middleware_list.extend(middleware)
        self.transport_name = "StreamableHTTP" if transport != "sse" else "SSE"
        self.endpoint_path = path or ("/sse" if transport == "sse" else "/mcp")
        app = super().http_app(
            path=path, middleware=final_middleware_list, transport=transport, **kwargs
        )
        return app


main_mcp = ZohoProjectsMCP(name="zoho-projects-mcp-server", lifespan=main_lifespan)
register_project_tools(main_mcp)


@main_mcp.custom_route("/health", methods=["GET"], include_in_schema=False)
async def health_check(request: Request) -> JSONResponse:
    return JSONResponse(
        {
            "status": "ok",
            "activeSessions": main_mcp.active_sessions,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


@main_mcp.custom_route("/", methods=["GET"], include_in_schema=False)
async def server_info(request: Request) -> JSONResponse:
    return JSONResponse(
        {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "transport": main_mcp.transport_name,
            "endpoints": {"mcp": main_mcp.endpoint_path, "health": "/health"},
            "activeSessions": main_mcp.active_sessions,
        }
    )
