"""
MCP Protocol Handler

JSON-RPC 2.0 dispatch for the MCP methods the bridge serves:
initialize, notifications/initialized, tools/list, tools/call and ping.

Requests are handled independently; the only state is the session store,
which the transport owns and passes in.
"""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from . import __version__
from .executor import ToolExecutor

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "editor-mcp"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def dump_json(data: Any, indent: Optional[int] = None) -> str:
    """JSON text for tool data; values json can't encode are rendered with str()."""
    return json.dumps(data, indent=indent, ensure_ascii=False, default=str)


def jsonrpc_response(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def jsonrpc_error(request_id: Any, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


# ============== Sessions ==============


@dataclass
class Session:
    id: str
    protocol_version: str
    client_info: Optional[Dict[str, Any]] = None
    initialized: bool = True
    created_at: int = field(default_factory=lambda: int(time.time() * 1000))


class SessionStore:
    """In-memory MCP sessions keyed by their opaque id."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def create(self, protocol_version: str, client_info: Optional[Dict[str, Any]] = None) -> Session:
        session = Session(
            id=str(uuid.uuid4()),
            protocol_version=protocol_version,
            client_info=client_info,
        )
        self._sessions[session.id] = session
        return session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def delete(self, session_id: Optional[str]) -> bool:
        """Remove a session. Unknown or missing ids are ignored."""
        if not session_id or session_id not in self._sessions:
            return False
        del self._sessions[session_id]
        return True

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


# ============== Dispatch ==============


@dataclass
class McpReply:
    """
    Outcome of handling one POST body.

    ``body`` is None when nothing needs to be sent back (notifications only),
    in which case the transport answers 202 Accepted.
    """
    body: Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]
    session_id: Optional[str] = None


class McpProtocolHandler:
    """Routes JSON-RPC messages to MCP method handlers."""

    def __init__(self, executor: ToolExecutor, sessions: SessionStore):
        self.executor = executor
        self.sessions = sessions
        self.server_info = {"name": SERVER_NAME, "version": __version__}

    async def handle_payload(self, payload: Any, session_id: Optional[str] = None) -> McpReply:
        """Handle a single message or a batch (list) of messages."""
        if isinstance(payload, list):
            return await self._handle_batch(payload, session_id)

        response, new_session_id = await self.handle_message(payload, session_id)
        return McpReply(body=response, session_id=new_session_id)

    async def _handle_batch(self, batch: List[Any], session_id: Optional[str]) -> McpReply:
        if not batch:
            return McpReply(body=jsonrpc_error(None, INVALID_REQUEST, "Invalid Request: empty batch"))

        outcomes = await asyncio.gather(
            *(self._handle_batch_item(message, session_id) for message in batch)
        )

        responses = [response for response, _ in outcomes if response is not None]
        created = next((sid for _, sid in outcomes if sid), None)
        return McpReply(body=responses or None, session_id=created)

    async def _handle_batch_item(self, message: Any, session_id: Optional[str]):
        # Failures stay local to their element.
        try:
            return await self.handle_message(message, session_id)
        except Exception as e:
            logger.error(f"MCP batch element failed: {e}", exc_info=True)
            if "id" not in message:
                return None, None
            return jsonrpc_error(message["id"], INTERNAL_ERROR, str(e) or e.__class__.__name__), None

    async def handle_message(self, message: Any, session_id: Optional[str] = None):
        """
        Handle one JSON-RPC message.

        Returns (response or None, id of a session created by this message).
        """
        if not isinstance(message, dict):
            return jsonrpc_error(None, INVALID_REQUEST, "Invalid Request: must be a JSON object"), None

        request_id = message.get("id")
        if message.get("jsonrpc") != JSONRPC_VERSION:
            return jsonrpc_error(request_id, INVALID_REQUEST, "Invalid Request: must be JSON-RPC 2.0"), None

        method = message.get("method")
        params = message.get("params")
        if params is None:
            params = {}
        is_notification = "id" not in message

        logger.debug(f"MCP request: {method} id={request_id} session={session_id}")

        if method == "notifications/initialized" or (
            is_notification and isinstance(method, str) and method.startswith("notifications/")
        ):
            return None, None

        if not isinstance(params, dict):
            response = jsonrpc_error(request_id, INVALID_PARAMS, "Invalid params: must be an object")
            return (None if is_notification else response), None

        new_session_id = None
        if method == "initialize":
            result, new_session_id = self._initialize(params)
            response = jsonrpc_response(request_id, result)
        elif method == "tools/list":
            response = jsonrpc_response(request_id, {"tools": self.executor.list_tools()})
        elif method == "tools/call":
            response = await self._tools_call(request_id, params)
        elif method == "ping":
            response = jsonrpc_response(request_id, {})
        else:
            response = jsonrpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        if is_notification:
            return None, new_session_id
        return response, new_session_id

    def _initialize(self, params: Dict[str, Any]):
        session = self.sessions.create(
            protocol_version=params.get("protocolVersion") or PROTOCOL_VERSION,
            client_info=params.get("clientInfo"),
        )
        logger.debug(f"MCP session initialized: {session.id}")

        result = {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": dict(self.server_info),
        }
        return result, session.id

    async def _tools_call(self, request_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not name:
            return jsonrpc_error(request_id, INVALID_PARAMS, "Invalid params: missing tool name")
        if not isinstance(name, str):
            return jsonrpc_error(request_id, INVALID_PARAMS, "Invalid params: tool name must be a string")

        args = params.get("arguments")
        if args is None:
            args = {}
        if not isinstance(args, dict):
            return jsonrpc_error(request_id, INVALID_PARAMS, "Invalid params: arguments must be an object")

        result = await self.executor.execute(name, args)

        if result.success:
            text = dump_json(result.data, indent=2)
            return jsonrpc_response(request_id, {
                "content": [{"type": "text", "text": text}],
                "isError": False,
            })

        return jsonrpc_response(request_id, {
            "content": [{"type": "text", "text": result.error or "Tool execution failed"}],
            "isError": True,
        })
