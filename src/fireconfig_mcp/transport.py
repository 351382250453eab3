"""
HTTP transport for the Fire Config MCP server.

Serves the MCP tools over Server-Sent Events:
- GET  /mcp      opens the event stream (becomes the active session)
- POST /message  routes a client message into the active session
- GET  /health   health check

Only one session is served at a time: each new SSE connection replaces the
previous one. Posting before any session exists is a server error.
"""

from mcp.server.fastmcp import FastMCP
from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from fireconfig_mcp.utils import get_logger

logger = get_logger("transport")


class SingleSessionTransport:
    """
    Holds the one active SSE session and dispatches posted messages to it.

    Usage:
        transport = SingleSessionTransport(mcp)
        app = transport.build_app()
        uvicorn.run(app, host="0.0.0.0", port=3000)
    """

    def __init__(self, mcp: FastMCP, sse_path: str = "/mcp", message_path: str = "/message"):
        self._mcp = mcp
        self.sse_path = sse_path
        self.message_path = message_path
        self._sse: SseServerTransport | None = None
        self.connections = 0

    @property
    def has_session(self) -> bool:
        return self._sse is not None

    async def handle_sse(self, scope: Scope, receive: Receive, send: Send):
        """Open an SSE stream and run the MCP server on it until it closes."""
        sse = SseServerTransport(self.message_path)
        self._sse = sse
        self.connections += 1
        logger.info(f"Client connected, opening SSE session #{self.connections}")

        server = self._mcp._mcp_server
        async with sse.connect_sse(scope, receive, send) as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())

        logger.info("SSE session closed")

    async def handle_message(self, scope: Scope, receive: Receive, send: Send):
        """Forward a posted JSON-RPC message to the active session."""
        logger.debug("Received message, checking for transport")

        if self._sse is None:
            logger.warning("Message posted before any SSE session was opened")
            response = JSONResponse({"error": "No transport"}, status_code=500)
            await response(scope, receive, send)
            return

        await self._sse.handle_post_message(scope, receive, send)

    def build_app(self, debug: bool = False) -> Starlette:
        """Create the Starlette application exposing the MCP endpoints."""

        async def health_check(request: Request) -> PlainTextResponse:
            return PlainTextResponse("OK", status_code=200)

        return Starlette(
            debug=debug,
            routes=[
                Route(self.sse_path, endpoint=_AsgiEndpoint(self.handle_sse), methods=["GET"]),
                Route(self.message_path, endpoint=_AsgiEndpoint(self.handle_message), methods=["POST"]),
                Route("/health", endpoint=health_check, methods=["GET"]),
            ],
        )


class _AsgiEndpoint:
    """Wrap a bound ASGI coroutine so Starlette routes raw scope/receive/send to it."""

    def __init__(self, handler):
        self._handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        await self._handler(scope, receive, send)
