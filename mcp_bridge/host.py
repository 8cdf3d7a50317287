"""
Bridge host integration.

BridgeHost is what an editor embeds: it owns the built-in and external
tool registries, starts and stops the bridge, accepts tools contributed by
other components and hands out a small service object describing the
running bridge.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .base import ToolDefinition, ValidationError
from .config import BridgeConfig
from .registry import ToolRegistry
from .server import BridgeHandle, start_bridge, stop_bridge
from .tools import create_builtin_registry
from .workspace import EditorWorkspace

logger = logging.getLogger(__name__)


class ToolRegistration:
    """Disposal handle for a batch of external tools."""

    def __init__(self, registry: ToolRegistry, names: List[str]):
        self._registry = registry
        self.names = list(names)
        self.disposed = False

    def dispose(self) -> None:
        if self.disposed:
            return
        for name in self.names:
            self._registry.unregister(name)
        self.disposed = True
        logger.debug(f"Unregistered external MCP tools: {', '.join(self.names)}")


@dataclass
class BridgeService:
    """Read-only view of the bridge for other components."""

    host: "BridgeHost"

    def get_bridge_port(self) -> Optional[int]:
        return self.host.bridge.port if self.host.bridge else None

    def is_running(self) -> bool:
        return self.host.bridge is not None

    def get_relay_command(self) -> List[str]:
        """Command line that launches the stdio relay."""
        return [sys.executable, "-m", "mcp_relay"]


class BridgeHost:
    """Owns the bridge's registries and its start/stop lifecycle."""

    def __init__(self, workspace: EditorWorkspace, config: Optional[BridgeConfig] = None):
        self.config = config or BridgeConfig()
        self.builtins = create_builtin_registry(workspace)
        self.external = ToolRegistry()
        self.bridge: Optional[BridgeHandle] = None

    async def start(self) -> BridgeHandle:
        if self.bridge is not None:
            logger.debug("Bridge already running")
            return self.bridge

        logger.debug(f"Starting MCP bridge basePort={self.config.port}")
        try:
            self.bridge = await start_bridge(self.builtins, self.external, self.config)
        except Exception as e:
            logger.error(f"Failed to start MCP bridge: {e}")
            raise

        logger.debug(f"MCP bridge started on port {self.bridge.port}")
        return self.bridge

    async def stop(self) -> None:
        if self.bridge is None:
            return

        bridge, self.bridge = self.bridge, None
        logger.debug("Stopping MCP bridge")
        try:
            await stop_bridge(bridge)
        except Exception as e:
            logger.error(f"Error stopping bridge: {e}")
            raise

    def status(self) -> Dict[str, Any]:
        if self.bridge is None:
            return {"running": False, "host": None, "port": None, "url": None}
        return {
            "running": True,
            "host": self.bridge.host,
            "port": self.bridge.port,
            "url": self.bridge.url,
        }

    def consume_tools(self, tools: Iterable[Any]) -> ToolRegistration:
        """
        Register tools contributed by another component.

        Each tool is a ToolDefinition, any object with ``name`` and
        ``execute``, or a mapping with those keys. Invalid entries are
        logged and skipped. Dispose the returned handle to remove them.
        """
        if not isinstance(tools, (list, tuple)):
            logger.error("Invalid MCP tools provider: must provide a list of tools")
            return ToolRegistration(self.external, [])

        registered: List[str] = []
        for tool in tools:
            if isinstance(tool, Mapping):
                try:
                    tool = ToolDefinition.from_mapping(tool)
                except ValidationError as e:
                    logger.error(f"{e}: {tool!r}")
                    continue
            elif not getattr(tool, "name", None) or not callable(getattr(tool, "execute", None)):
                logger.error(f"Invalid tool definition: must have name and execute: {tool!r}")
                continue

            self.external.register(tool.name, tool)
            registered.append(tool.name)
            logger.debug(f"Registered external MCP tool: {tool.name}")

        logger.debug(f"Registered {len(registered)} external MCP tools")
        return ToolRegistration(self.external, registered)

    def provide_service(self) -> BridgeService:
        return BridgeService(self)
