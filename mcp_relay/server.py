#!/usr/bin/env python3
"""
MCP Stdio Relay

Standalone process spawned by an MCP client. Reads one JSON-RPC request per
line on stdin, forwards tool calls to the editor bridge over HTTP and writes
one JSON-RPC response per line on stdout.

stdout carries protocol messages only; all diagnostics go to stderr.

Environment variables:
  MCP_BRIDGE_PORT - Port of the bridge server (default: 3000)
  MCP_BRIDGE_HOST - Host of the bridge server (default: 127.0.0.1)
"""

import json
import logging
import sys
from typing import Any, Dict, Optional, TextIO

from dotenv import load_dotenv

from . import __version__
from .client import BridgeClient, MethodNotFoundError, RelayError
from .config import RelayConfig

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "editor-mcp-relay"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600


class StdioRelay:
    """Line-delimited JSON-RPC loop in front of a BridgeClient."""

    def __init__(self, client: BridgeClient, stdin: TextIO = None, stdout: TextIO = None):
        self.client = client
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def run(self) -> None:
        """Serve until stdin is closed."""
        for line in self.stdin:
            response = self.handle_line(line)
            if response is not None:
                self._write(response)

    def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        line = line.strip()
        if not line:
            return None

        try:
            request = json.loads(line)
        except ValueError:
            return _error(None, PARSE_ERROR, "Parse error")

        if not isinstance(request, dict):
            return _error(None, INVALID_REQUEST, "Invalid Request")

        # Notifications get no reply
        if "id" not in request:
            return None

        request_id = request["id"]
        try:
            result = self.dispatch(request.get("method"), request.get("params") or {})
        except RelayError as e:
            return _error(request_id, e.code, e.message)
        except Exception as e:
            logger.exception(f"Relay error handling {request.get('method')}")
            return _error(request_id, RelayError.code, str(e) or e.__class__.__name__)

        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    def dispatch(self, method: Any, params: Dict[str, Any]) -> Any:
        if method == "initialize":
            return {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            }

        if method == "tools/list":
            self.client.ensure_available()
            return {"tools": self.client.list_tools()}

        if method == "tools/call":
            self.client.ensure_available()
            data = self.client.call_tool(params.get("name", ""), params.get("arguments") or {})
            return {
                "content": [{"type": "text", "text": json.dumps(data, indent=2, ensure_ascii=False)}],
            }

        raise MethodNotFoundError(f"Method not found: {method}")

    def _write(self, message: Dict[str, Any]) -> None:
        self.stdout.write(json.dumps(message, ensure_ascii=False) + "\n")
        self.stdout.flush()


def _error(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def main():
    """Run the relay on this process's stdin/stdout."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = RelayConfig.from_env()
    relay = StdioRelay(BridgeClient(config))
    logger.info(f"MCP relay started (bridge: {config.base_url})")
    relay.run()


if __name__ == "__main__":
    main()
