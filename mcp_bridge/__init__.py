"""
MCP Bridge Layer

Runs inside the editor process and serves the editor's tools over MCP
(JSON-RPC 2.0 over HTTP). The stdio-facing side lives in mcp_relay.
"""

__version__ = "1.0.0"

from .base import ToolDefinition, ToolResult
from .executor import ToolExecutor
from .host import BridgeHost, ToolRegistration
from .ports import PortUnavailableError, find_available_port
from .registry import ToolRegistry
from .server import BridgeHandle, create_app, start_bridge, stop_bridge

__all__ = [
    "BridgeHandle",
    "BridgeHost",
    "PortUnavailableError",
    "ToolDefinition",
    "ToolExecutor",
    "ToolRegistration",
    "ToolRegistry",
    "ToolResult",
    "create_app",
    "find_available_port",
    "start_bridge",
    "stop_bridge",
]
