"""Zoho Projects MCP server."""

import logging
import os
import sys
from functools import partial

import anyio
import click
from dotenv import load_dotenv

from zoho_projects_mcp.utils.environment import is_verbose_mode
from zoho_projects_mcp.utils.logging import setup_logging

__version__ = "1.0.0"

logger = logging.getLogger("zoho-projects-mcp")

TRANSPORTS = ("stdio", "streamable-http", "sse")


@click.command()
@click.version_option(__version__, prog_name="zoho-projects-mcp")
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (can be used multiple times)",
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to .env file",
)
@click.option(
    "--transport",
    type=click.Choice(TRANSPORTS),
    default=None,
    help="Transport type (stdio, streamable-http or sse). Defaults to TRANSPORT env var or stdio.",
)
@click.option(
    "--host",
    default="0.0.0.0",  # noqa: S104
    show_default=True,
    help="Host to bind the HTTP transports to",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port for the HTTP transports. Defaults to HTTP_PORT env var or 3001.",
)
def main(
    verbose: int,
    env_file: str | None,
    transport: str | None,
    host: str,
    port: int | None,
) -> None:
    """Zoho Projects MCP Server.

    Exposes Zoho Projects portals, projects, tasks, issues, phases, search
    and users as MCP tools.
    """
    if env_file:
        logger.debug(f"Loading environment from file: {env_file}")
        load_dotenv(env_file, override=True)
    else:
        load_dotenv()

    if verbose >= 2 or is_verbose_mode():
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    setup_logging(level)

    final_transport = transport or os.getenv("TRANSPORT", "stdio").lower()
    if final_transport not in TRANSPORTS:
        raise click.BadParameter(
            f"Unsupported transport {final_transport!r}", param_hint="--transport"
        )

    # Imported late so the environment is loaded before the server module reads it
    from zoho_projects_mcp.config import ZohoConfig
    from zoho_projects_mcp.servers.main import main_mcp

    run_kwargs: dict = {"transport": final_transport}
    if final_transport == "stdio":
        logger.info("Starting server with STDIO transport.")
    else:
        final_port = port if port is not None else ZohoConfig.from_env().http_port
        run_kwargs.update({"host": host, "port": final_port})
        logger.info(
            f"Starting server with {final_transport.upper()} transport on "
            f"http://{host}:{final_port}"
        )

    try:
        anyio.run(partial(main_mcp.serve, **run_kwargs))
    except KeyboardInterrupt:
        logger.info("Server shutdown requested.")
        sys.exit(0)


__all__ = ["__version__", "main"]
