"""
Built-in MCP Tools

Every tool here is registered by the bridge at start-up. Tools contributed
by other components go through BridgeHost.consume_tools instead.
"""

from .editor import EditorTools, create_builtin_registry

__all__ = ["EditorTools", "create_builtin_registry"]
