"""
MCP Tool Registry

Maps tool names to executable tools. Holds no I/O of its own; the bridge
keeps one registry for built-in tools and another for tools contributed by
other components at runtime.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from .base import ExecutableTool, tool_metadata

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name -> tool mapping with registration-order listing."""

    def __init__(self, tools: Optional[List[ExecutableTool]] = None):
        self._tools: Dict[str, ExecutableTool] = {}
        for definition in tools or []:
            self.register(definition.name, definition)

    def register(self, name: str, definition: ExecutableTool) -> None:
        """Add a tool, replacing any existing tool with the same name."""
        if name in self._tools:
            logger.debug(f"Replacing tool: {name}")
        self._tools[name] = definition
        logger.debug(f"Registered tool: {name}")

    def unregister(self, name: str) -> bool:
        removed = self._tools.pop(name, None) is not None
        if removed:
            logger.debug(f"Unregistered tool: {name}")
        return removed

    def lookup(self, name: str) -> Optional[ExecutableTool]:
        """
        Get a specific tool by name.
        Returns None if tool not found.
        """
        return self._tools.get(name)

    def list(self) -> List[Dict[str, Any]]:
        """Public metadata of every tool. Never exposes the procedures."""
        return [tool_metadata(definition) for definition in self._tools.values()]

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ExecutableTool]:
        return iter(list(self._tools.values()))
