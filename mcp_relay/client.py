"""
Bridge Client

HTTP client the relay uses to reach the bridge running inside the editor.
Uses the bridge's REST surface: GET /health, GET /tools, POST /tools/{name}.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .config import RelayConfig

logger = logging.getLogger(__name__)

INTERNAL_ERROR = -32603
METHOD_NOT_FOUND = -32601


class RelayError(Exception):
    """Error that the relay reports back as a JSON-RPC error."""

    code = INTERNAL_ERROR

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class BridgeUnavailableError(RelayError):
    """The bridge did not answer its health check."""
    pass


class ToolCallError(RelayError):
    """The bridge reported a failed tool call."""
    pass


class MethodNotFoundError(RelayError):
    code = METHOD_NOT_FOUND


class BridgeClient:
    """Talks to the bridge over loopback HTTP. No request timeouts are applied."""

    def __init__(self, config: Optional[RelayConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or RelayConfig()
        self.session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def is_available(self) -> bool:
        """Check if the bridge answers GET /health."""
        try:
            response = self.session.get(f"{self.base_url}/health")
        except requests.exceptions.RequestException as e:
            logger.debug(f"Bridge health check failed: {e}")
            return False
        return response.ok

    def ensure_available(self) -> None:
        if not self.is_available():
            raise BridgeUnavailableError(
                f"Editor bridge not available at {self.base_url}. "
                "Make sure the editor is running with the MCP bridge started."
            )

    def list_tools(self) -> List[Dict[str, Any]]:
        """Fetch the combined tool list (built-in + external) from the bridge."""
        response = self.session.get(f"{self.base_url}/tools")
        if not response.ok:
            raise RelayError("Failed to fetch tools from bridge")
        return response.json().get("tools", [])

    def call_tool(self, tool_name: str, arguments: Dict[str, Any]) -> Any:
        """Execute a tool through the bridge and return its data."""
        response = self.session.post(
            f"{self.base_url}/tools/{quote(tool_name, safe='')}",
            json=arguments,
        )

        try:
            result = response.json()
        except ValueError:
            result = {}
        if not isinstance(result, dict):
            result = {}

        if not response.ok or not result.get("success"):
            raise ToolCallError(result.get("error") or f"Tool call failed: {tool_name}")

        return result.get("data")
