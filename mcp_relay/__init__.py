"""
MCP Relay Layer

Stdio-facing side of the bridge: speaks JSON-RPC on stdin/stdout and
forwards every tool call to the bridge inside the editor.
"""

__version__ = "1.0.0"

from .client import BridgeClient, BridgeUnavailableError, RelayError, ToolCallError
from .config import RelayConfig
from .server import StdioRelay

__all__ = [
    "BridgeClient",
    "BridgeUnavailableError",
    "RelayConfig",
    "RelayError",
    "StdioRelay",
    "ToolCallError",
]
