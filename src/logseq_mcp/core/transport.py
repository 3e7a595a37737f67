# ============================================================================
# LOGSEQ MCP - TRANSPORT LAYER
# ============================================================================
# Copyright 2026 logseq-mcp authors. All Rights Reserved.
#
# STDIO:  the assistant launches the server as a subprocess (one session)
# HTTP:   stateless streamable HTTP under /mcp; every request may carry its
#         own Logseq token as a Bearer header
#
# Both transports await `on_shutdown` once the server stops, so the shared
# Logseq HTTP connection pool is released.
# ============================================================================

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable
from collections.abc import AsyncIterator

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.server.models import InitializationOptions
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

logger = logging.getLogger(__name__)

__all__ = [
    "MCP_PATH",
    "SERVER_CARD_PATH",
    "run_stdio",
    "run_http",
    "create_http_app",
]

MCP_PATH = "/mcp"
SERVER_CARD_PATH = "/.well-known/mcp/server-card.json"

ShutdownHook = Callable[[], Awaitable[None]]


# ============================================================================
# STDIO TRANSPORT
# ============================================================================

def run_stdio(
    server: Server,
    init_options: InitializationOptions,
    on_shutdown: ShutdownHook | None = None,
) -> None:
    asyncio.run(_serve_stdio(server, init_options, on_shutdown))


async def _serve_stdio(
    server: Server,
    init_options: InitializationOptions,
    on_shutdown: ShutdownHook | None,
) -> None:
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, init_options)
    finally:
        if on_shutdown is not None:
            await on_shutdown()


# ============================================================================
# HTTP TRANSPORT
# ============================================================================

def create_http_app(
    server: Server,
    server_card: dict[str, Any],
    on_shutdown: ShutdownHook | None = None,
) -> Any:
    """Starlette app exposing the MCP endpoint, /health and the server card.

    `server_card` is served as-is; its "version" is echoed by /health.
    """
    session_manager = StreamableHTTPSessionManager(
        app=server,
        json_response=True,
        stateless=True,
    )

    async def card(request: Request) -> JSONResponse:
        return JSONResponse(server_card)

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "version": server_card.get("version")})

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        try:
            async with session_manager.run():
                yield
        finally:
            if on_shutdown is not None:
                await on_shutdown()

    app = Starlette(
        routes=[
            Route(SERVER_CARD_PATH, endpoint=card, methods=["GET"]),
            Route("/health", endpoint=health, methods=["GET"]),
            Mount(MCP_PATH, app=session_manager.handle_request),
        ],
        lifespan=lifespan,
    )

    # Browser-based clients need to read the session header
    return CORSMiddleware(
        app,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=["Mcp-Session-Id"],
    )


def run_http(app: Any, host: str, port: int) -> None:
    import uvicorn

    logger.info(f"Logseq MCP listening on http://{host}:{port}{MCP_PATH}")
    uvicorn.run(app, host=host, port=port, log_level="info")
