"""
MCP Tool Base Classes and Validators

Provides the tool definition type, the argument validators, the uniform
result envelope and the error types shared by every tool.
"""

import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Mapping,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Tool execution failed"


def empty_input_schema() -> Dict[str, Any]:
    return {"type": "object", "properties": {}, "required": []}


class ValidationError(ValueError):
    """Raised when a tool handed to the bridge lacks a name or a procedure."""
    pass


# ============== Validators ==============
#
# A validator takes (value, argument name) and returns an error message,
# or None when the value is acceptable.

Validator = Callable[[Any, str], Optional[str]]


def string(value: Any, name: str) -> Optional[str]:
    return None if isinstance(value, str) else f"{name} is required"


def number(value: Any, name: str) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return f"{name} is required"
    return None


def array(value: Any, name: str) -> Optional[str]:
    if isinstance(value, list) and len(value) > 0:
        return None
    return f"{name} array is required"


def one_of(*allowed: Any) -> Validator:
    """Build a validator accepting only the enumerated values."""
    def validate(value: Any, name: str) -> Optional[str]:
        if value in allowed:
            return None
        return f"{name} must be one of: {', '.join(str(a) for a in allowed)}"
    return validate


def optional(value: Any, name: str) -> Optional[str]:
    return None


# ============== Tool Definitions ==============


ToolProcedure = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]


def _identity(result: Any, args: Dict[str, Any]) -> Any:
    return result


@runtime_checkable
class ExecutableTool(Protocol):
    """
    Anything the bridge can list and invoke.

    Built-in and external tools share this shape, so the registry does not
    care where a tool came from.
    """

    name: str
    description: str
    input_schema: Dict[str, Any]
    annotations: Dict[str, Any]

    def execute(self, args: Dict[str, Any]) -> Any:
        ...


@dataclass(frozen=True)
class ToolDefinition:
    """Complete definition of an MCP tool."""
    name: str
    execute: ToolProcedure
    description: str = ""
    input_schema: Dict[str, Any] = field(default_factory=empty_input_schema)
    annotations: Dict[str, Any] = field(default_factory=dict)
    validators: Dict[str, Validator] = field(default_factory=dict)
    format: Callable[[Any, Dict[str, Any]], Any] = _identity
    failure_message: str = DEFAULT_FAILURE_MESSAGE

    def metadata(self) -> Dict[str, Any]:
        """Public view of the tool, as advertised to clients."""
        return tool_metadata(self)

    @classmethod
    def from_mapping(cls, spec: Mapping[str, Any]) -> "ToolDefinition":
        """
        Build a definition from a plain mapping.

        Accepts both ``inputSchema`` and ``input_schema`` keys so hosts can
        hand over tool specs in MCP wire form.
        """
        name = spec.get("name")
        execute = spec.get("execute")
        if not name or not callable(execute):
            raise ValidationError("Invalid tool definition: must have name and execute")

        input_schema = spec.get("inputSchema", spec.get("input_schema")) or empty_input_schema()
        return cls(
            name=name,
            execute=execute,
            description=spec.get("description") or "",
            input_schema=input_schema,
            annotations=dict(spec.get("annotations") or {}),
            validators=dict(spec.get("validators") or {}),
            format=spec.get("format") or _identity,
            failure_message=spec.get("failure_message") or DEFAULT_FAILURE_MESSAGE,
        )


def tool_metadata(tool: Any) -> Dict[str, Any]:
    """Metadata for any executable tool, with MCP defaults for missing fields."""
    return {
        "name": tool.name,
        "description": getattr(tool, "description", None) or "",
        "inputSchema": getattr(tool, "input_schema", None) or empty_input_schema(),
        "annotations": dict(getattr(tool, "annotations", None) or {}),
    }


# ============== Result Envelope ==============


class ToolResult(BaseModel):
    """Normalized outcome of a tool invocation."""

    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}
