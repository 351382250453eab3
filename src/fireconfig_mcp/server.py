"""
Fire Config MCP Server - Firebase Remote Config over MCP

This MCP server lets AI agents manage Firebase Remote Config templates
across one or more named environments (dev, staging, prod, ...):
- Read the active template or a single parameter
- Create or update parameter default values and condition overrides
- Remove parameters or individual condition overrides

Environments are passed on the command line; each needs a
serviceAccount_<env>.json file in the credentials directory.

    fire-config-mcp dev staging --port 3000
"""

import argparse
import asyncio
import os
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Sequence

import uvicorn
from mcp.server.fastmcp import FastMCP

from fireconfig_mcp.registry import DEFAULT_ENV, CredentialError, EnvironmentRegistry
from fireconfig_mcp.transport import SingleSessionTransport
from fireconfig_mcp.utils.logging_config import setup_logging

SERVER_NAME = "fire-config-mcp"
SERVER_VERSION = "0.1.0"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

# Set up logging (writes to stderr for STDIO transport compatibility)
logger = setup_logging()


@dataclass
class AppConfig:
    """Application configuration loaded at startup."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    credentials_dir: str = "."
    sse_path: str = "/mcp"
    message_path: str = "/message"
    stdio: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "AppConfig":
        return cls(
            host=args.host,
            port=args.port,
            credentials_dir=args.credentials_dir,
            stdio=args.stdio,
            log_level=args.log_level,
        )


@dataclass
class AppContext:
    """
    Shared application context available to all tools via lifespan.

    The registry is built once in main() and handed to every session.

    Access in tools via: ctx.request_context.lifespan_context
    """

    registry: EnvironmentRegistry
    config: AppConfig


def create_server(registry: EnvironmentRegistry, config: AppConfig | None = None) -> FastMCP:
    """
    Create the FastMCP instance with the Remote Config tools registered.

    Args:
        registry: Environments the tools operate on
        config: Startup configuration (defaults to AppConfig())
    """
    config = config or AppConfig()

    @asynccontextmanager
    async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
        logger.info(f"Session started, environments: {', '.join(registry.names) or 'none'}")
        yield AppContext(registry=registry, config=config)

    mcp = FastMCP(
        name=SERVER_NAME,
        instructions="""
        Firebase Remote Config manager:

        - remoteConfig: read the whole template or a single parameter
        - upsertRemoteConfig: set a default value or an EXISTING condition's override
        - removeRemoteConfig: delete a parameter or one condition override

        Every tool accepts an optional `env`; without it the server's default
        environment is used. Changes are published immediately.
        """,
        lifespan=app_lifespan,
    )

    # =========================================================================
    # Register tool modules
    # =========================================================================
    from fireconfig_mcp.tools import remote_config as remote_config_tools

    remote_config_tools.register(mcp)

    return mcp


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="MCP server for Firebase Remote Config",
    )
    parser.add_argument(
        "envs",
        nargs="*",
        metavar="ENV",
        help=f"Environments to load (default: {DEFAULT_ENV})",
    )
    parser.add_argument(
        "--host",
        default=os.getenv("FIRECONFIG_HOST", DEFAULT_HOST),
        help="HTTP server host",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("FIRECONFIG_PORT", DEFAULT_PORT)),
        help="HTTP server port",
    )
    parser.add_argument(
        "--credentials-dir",
        default=os.getenv("FIRECONFIG_CREDENTIALS_DIR", "."),
        help="Directory containing serviceAccount_<env>.json files",
    )
    parser.add_argument(
        "--stdio",
        action="store_true",
        help="Use STDIO transport instead of HTTP",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {SERVER_VERSION}",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser.parse_args(argv)


async def serve(mcp: FastMCP, registry: EnvironmentRegistry, config: AppConfig):
    """Run the chosen transport until it stops, then release the clients."""
    try:
        if config.stdio:
            logger.info("Starting Fire Config MCP Server with STDIO transport")
            await mcp.run_stdio_async()
        else:
            transport = SingleSessionTransport(mcp, config.sse_path, config.message_path)
            server = uvicorn.Server(uvicorn.Config(
                transport.build_app(),
                host=config.host,
                port=config.port,
                log_level=config.log_level.lower(),
            ))
            logger.info(f"Listening on {config.host}:{config.port}")
            await server.serve()
    finally:
        logger.info("Fire Config MCP Server shutting down...")
        await registry.aclose()


def main(argv: Sequence[str] | None = None):
    """Run the Fire Config MCP server."""
    args = parse_args(argv)
    config = AppConfig.from_args(args)
    setup_logging(config.log_level)

    try:
        registry = EnvironmentRegistry.from_credentials(args.envs, config.credentials_dir)
    except CredentialError as e:
        logger.error(f"Cannot start: {e}")
        sys.exit(1)

    mcp = create_server(registry, config)
    asyncio.run(serve(mcp, registry, config))


if __name__ == "__main__":
    main()
