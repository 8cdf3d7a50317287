"""
Tool Executor

Resolves a tool by name (built-ins first, then external tools), validates
its arguments, runs it and normalizes the outcome into a ToolResult.
"""

import inspect
import json
import logging
import time
from typing import Any, Dict, List, Optional

from .base import DEFAULT_FAILURE_MESSAGE, ExecutableTool, ToolResult
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

LOG_PAYLOAD_LIMIT = 200


def _truncate(payload: Any, limit: int = LOG_PAYLOAD_LIMIT) -> str:
    try:
        text = json.dumps(payload, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(payload)
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def _error_message(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


class ToolExecutor:
    """
    Executes tools from the built-in registry, falling back to the external
    registry only when the built-in lookup misses.
    """

    def __init__(self, builtins: ToolRegistry, external: Optional[ToolRegistry] = None):
        self.builtins = builtins
        self.external = external if external is not None else ToolRegistry()

    def resolve(self, name: str) -> Optional[ExecutableTool]:
        tool = self.builtins.lookup(name)
        if tool is None:
            tool = self.external.lookup(name)
        return tool

    def list_tools(self) -> List[Dict[str, Any]]:
        """Built-in tool metadata followed by external tool metadata."""
        return self.builtins.list() + self.external.list()

    async def execute(self, name: str, args: Optional[Dict[str, Any]] = None) -> ToolResult:
        args = args if args is not None else {}
        logger.debug(f"Executing tool: {name} args={_truncate(args)}")
        start = time.perf_counter()

        tool = self.resolve(name)
        if tool is None:
            result = ToolResult.fail(f"Unknown tool: {name}")
        else:
            result = await self._run(tool, args)

        elapsed_ms = (time.perf_counter() - start) * 1000
        if result.success:
            logger.debug(f"Tool {name} completed in {elapsed_ms:.2f}ms data={_truncate(result.data)}")
        else:
            logger.debug(f"Tool {name} failed in {elapsed_ms:.2f}ms error={_truncate(result.error)}")
        return result

    async def _run(self, tool: ExecutableTool, args: Dict[str, Any]) -> ToolResult:
        validators = getattr(tool, "validators", None) or {}
        for arg_name, validator in validators.items():
            message = validator(args.get(arg_name), arg_name)
            if message:
                return ToolResult.fail(message)

        try:
            outcome = tool.execute(args)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as e:
            return ToolResult.fail(_error_message(e))

        # False and None mean "did not happen"; 0, "" and empty collections are results.
        if outcome is False or outcome is None:
            return ToolResult.fail(getattr(tool, "failure_message", None) or DEFAULT_FAILURE_MESSAGE)

        formatter = getattr(tool, "format", None)
        if formatter is None:
            return ToolResult.ok(outcome)

        try:
            return ToolResult.ok(formatter(outcome, args))
        except Exception as e:
            return ToolResult.fail(_error_message(e))
