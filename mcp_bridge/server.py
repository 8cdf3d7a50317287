#!/usr/bin/env python3
"""
MCP Bridge Server

HTTP server that exposes the editor tools to MCP clients:
  - POST/DELETE /mcp      JSON-RPC 2.0 endpoint (MCP over HTTP)
  - GET /health           liveness
  - GET /tools            tool list (built-in + external)
  - POST /tools/{name}    direct tool execution (used by the stdio relay)

The listener binds a free port found by probing from the requested one.
"""

import asyncio
import json
import logging
import os
import re
import socket
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from . import __version__
from .config import LOG_FORMAT, BridgeConfig
from .executor import ToolExecutor
from .ports import find_available_port, socket_family
from .protocol import PARSE_ERROR, McpProtocolHandler, SessionStore, dump_json, jsonrpc_error
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

SESSION_HEADER = "Mcp-Session-Id"
TOOL_NAME_PATTERN = re.compile(r"^[A-Z][a-zA-Z]*$")

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Mcp-Session-Id, Accept",
    "Access-Control-Expose-Headers": SESSION_HEADER,
}


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """
    Answers every preflight with 204, stamps the allow-origin header on all
    responses and turns uncaught routing errors into 500s.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PREFLIGHT_HEADERS)

        try:
            response = await call_next(request)
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.error(f"HTTP error: {message}", exc_info=True)
            response = JSONResponse({"error": message}, status_code=500)

        response.headers.update(CORS_HEADERS)
        return response


# ============== API Endpoints ==============


async def mcp_endpoint(request: Request):
    session_id = request.headers.get(SESSION_HEADER)

    raw = await request.body()
    try:
        payload = json.loads(raw) if raw.strip() else {}
    except ValueError:
        return JSONResponse(jsonrpc_error(None, PARSE_ERROR, "Parse error: invalid JSON"), status_code=400)

    protocol: McpProtocolHandler = request.app.state.protocol
    reply = await protocol.handle_payload(payload, session_id)

    if reply.body is None:
        return Response(status_code=202)

    headers = {SESSION_HEADER: reply.session_id} if reply.session_id else None
    return JSONResponse(reply.body, headers=headers)


async def terminate_session(request: Request):
    session_id = request.headers.get(SESSION_HEADER)
    if request.app.state.sessions.delete(session_id):
        logger.debug(f"MCP session terminated: {session_id}")
    return Response(status_code=204)


async def health():
    return {"status": "ok", "timestamp": int(time.time() * 1000)}


async def list_tools(request: Request):
    executor: ToolExecutor = request.app.state.executor
    return {"tools": executor.list_tools()}


async def execute_tool_endpoint(tool_name: str, request: Request):
    if not TOOL_NAME_PATTERN.match(tool_name):
        raise StarletteHTTPException(status_code=404)

    raw = await request.body()
    try:
        args = json.loads(raw) if raw.strip() else {}
    except ValueError:
        raise ValueError("Invalid JSON body") from None

    logger.debug(f"HTTP POST /tools/{tool_name} args={args!r}")

    if not isinstance(args, dict):
        return JSONResponse({"success": False, "error": "Tool arguments must be a JSON object"}, status_code=400)

    executor: ToolExecutor = request.app.state.executor
    result = await executor.execute(tool_name, args)

    status_code = 200
    if not result.success:
        logger.debug(f"Tool request failed: {tool_name} error={result.error}")
        status_code = 400
    return Response(dump_json(result.to_dict()), status_code=status_code, media_type="application/json")


async def not_found_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (404, 405):
        logger.debug(f"404 Not Found: {request.method} {request.url.path}")
        return JSONResponse({"error": "Not found"}, status_code=404)
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


def create_app(
    builtins: ToolRegistry,
    external: Optional[ToolRegistry] = None,
    sessions: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Build the bridge application.

    The registries and the session store are owned by the caller and reached
    through ``app.state``.
    """
    app = FastAPI(
        title="MCP Editor Bridge",
        description="Model Context Protocol bridge for editor tools",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    executor = ToolExecutor(builtins, external)
    app.state.executor = executor
    app.state.sessions = sessions if sessions is not None else SessionStore()
    app.state.protocol = McpProtocolHandler(executor, app.state.sessions)

    app.add_middleware(CORSHeadersMiddleware)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)

    app.add_api_route("/mcp", mcp_endpoint, methods=["POST"])
    app.add_api_route("/mcp", terminate_session, methods=["DELETE"])
    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route("/tools", list_tools, methods=["GET"])
    app.add_api_route("/tools/{tool_name}", execute_tool_endpoint, methods=["POST"])
    return app


# ============== Lifecycle ==============


@dataclass
class BridgeHandle:
    """A running bridge. Stop it and start a new one; handles are not reused."""

    port: int
    host: str
    _server: uvicorn.Server = field(repr=False)
    _task: "asyncio.Task" = field(repr=False)

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def running(self) -> bool:
        return not self._task.done()

    async def stop(self) -> None:
        """Close the listener, letting in-flight requests finish."""
        self._server.should_exit = True
        await self._task

    async def wait_closed(self) -> None:
        await self._task


def _bind_listener(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket_family(host), socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    return sock


async def start_bridge(
    builtins: ToolRegistry,
    external: Optional[ToolRegistry] = None,
    config: Optional[BridgeConfig] = None,
) -> BridgeHandle:
    """
    Find a free port, bind it and serve the bridge on the running loop.

    Raises PortUnavailableError when the probe range is exhausted and
    OSError when the chosen port was taken before the listener bound it.
    """
    config = config or BridgeConfig()

    port = find_available_port(config.port, config.host, config.max_port_attempts)
    if port != config.port:
        logger.debug(f"Requested port {config.port} unavailable, using {port}")

    sock = _bind_listener(config.host, port)
    app = create_app(builtins, external)
    server = uvicorn.Server(uvicorn.Config(
        app,
        log_level="debug" if config.debug else "warning",
        access_log=False,
        lifespan="off",
    ))

    task = asyncio.create_task(server.serve(sockets=[sock]))
    while not server.started:
        if task.done():
            sock.close()
            task.result()
            raise RuntimeError(f"Bridge stopped before listening on {config.host}:{port}")
        await asyncio.sleep(0.01)

    logger.debug(f"Bridge listening on http://{config.host}:{port}")
    logger.debug(f"Available tools: {', '.join(builtins.names())}")
    return BridgeHandle(port=port, host=config.host, _server=server, _task=task)


async def stop_bridge(bridge: BridgeHandle) -> None:
    await bridge.stop()
    logger.debug("Bridge stopped")


# ============== Main ==============


async def serve(config: BridgeConfig) -> None:
    from .host import BridgeHost
    from .workspace import InMemoryWorkspace

    host = BridgeHost(InMemoryWorkspace([os.getcwd()]), config)
    bridge = await host.start()
    logger.info(f"MCP bridge running at {bridge.url}")
    await bridge.wait_closed()


def main():
    """Run the bridge over an in-memory workspace rooted at the CWD."""
    config = BridgeConfig.from_env()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("MCP bridge shutting down")


if __name__ == "__main__":
    main()
