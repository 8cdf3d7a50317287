"""
Editor Tools

Built-in tools operating on the host's EditorWorkspace: reading and
editing the active buffer, opening/saving/closing files and managing
project folders. All positions are 0-indexed.

Tools return None or False when there is nothing to act on (no active
editor, file not open); the executor reports that as a failure with the
tool's failure message.
"""

import logging
from typing import Any, Dict, List, Optional

from .. import base
from ..base import ToolDefinition
from ..registry import ToolRegistry
from ..workspace import EditorWorkspace, Position, TextBuffer

logger = logging.getLogger(__name__)

NO_ACTIVE_EDITOR = "No active editor"

READ_ONLY = {"readOnlyHint": True}
MUTATING = {"readOnlyHint": False}


def _position_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "description": description,
        "properties": {
            "row": {"type": "number", "description": "Row (0-indexed)"},
            "column": {"type": "number", "description": "Column (0-indexed)"},
        },
        "required": ["row", "column"],
    }


def _object_schema(properties: Optional[Dict[str, Any]] = None, required: Optional[List[str]] = None) -> Dict[str, Any]:
    return {"type": "object", "properties": properties or {}, "required": required or []}


def _range_dict(start: Position, end: Position) -> Dict[str, Any]:
    return {"start": start.to_dict(), "end": end.to_dict()}


class EditorTools:
    """Implementations of the built-in tools, bound to one workspace."""

    def __init__(self, workspace: EditorWorkspace):
        self.workspace = workspace

    def _buffer_for(self, path: Optional[str]) -> Optional[TextBuffer]:
        if path:
            return self.workspace.find_buffer(path)
        return self.workspace.active_buffer()

    # ------------------------------------------------------------------

    def get_active_editor(self, args: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        buffer = self.workspace.active_buffer()
        if buffer is None:
            return None

        text = buffer.get_text()
        return {
            "path": buffer.path,
            "cursorPosition": buffer.get_cursor().to_dict(),
            "grammar": buffer.grammar,
            "modified": buffer.modified,
            "lineCount": buffer.line_count(),
            "charCount": len(text),
        }

    def read_text(self, args: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        buffer = self.workspace.active_buffer()
        if buffer is None:
            return None

        start, end = args.get("start"), args.get("end")
        if not start and not end:
            return {"content": buffer.get_text(), "path": buffer.path}

        s = Position.from_dict(start) if start else Position(0, 0)
        e = Position.from_dict(end) if end else buffer.end_position()
        return {
            "content": buffer.get_text_in_range(s, e),
            "path": buffer.path,
            "range": _range_dict(s, e),
        }

    async def open_file(self, args: Dict[str, Any]) -> bool:
        row = args.get("row")
        column = args.get("column") if row is not None else None
        await self.workspace.open(args["path"], row=row, column=column)
        return True

    def get_project_paths(self, args: Dict[str, Any]) -> List[str]:
        return self.workspace.project_paths()

    async def save_file(self, args: Dict[str, Any]) -> bool:
        buffer = self._buffer_for(args.get("path"))
        if buffer is None:
            return False
        await self.workspace.save(buffer)
        return True

    def get_selections(self, args: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
        buffer = self.workspace.active_buffer()
        if buffer is None:
            return None

        return [
            {
                "text": buffer.get_text_in_range(start, end),
                "isEmpty": start == end,
                "range": _range_dict(start, end),
            }
            for start, end in buffer.get_selections()
        ]

    def set_selections(self, args: Dict[str, Any]) -> Any:
        selections = args["selections"]
        buffer = self.workspace.active_buffer()
        if buffer is None:
            return False

        ranges = []
        for selection in selections:
            start = Position.from_dict(selection["start"])
            end = Position.from_dict(selection["end"]) if selection.get("end") else start
            ranges.append((start, end))

        buffer.set_selections(ranges)
        return {"count": len(ranges)}

    def insert_text(self, args: Dict[str, Any]) -> Any:
        text = args["text"]
        buffer = self.workspace.active_buffer()
        if buffer is None:
            return False

        start, end = args.get("start"), args.get("end")
        if start and end:
            s, e = Position.from_dict(start), Position.from_dict(end)
            old_text = buffer.get_text_in_range(s, e)
            buffer.set_text_in_range(s, e, text)
            return {"oldText": old_text, "path": buffer.path}

        buffer.insert_text(text)
        return {"path": buffer.path}

    async def close_file(self, args: Dict[str, Any]) -> bool:
        buffer = self._buffer_for(args.get("path"))
        if buffer is None:
            return False

        if args.get("save") and buffer.modified:
            await self.workspace.save(buffer)

        self.workspace.close(buffer)
        return True

    def add_project_path(self, args: Dict[str, Any]) -> bool:
        path = args["path"]
        if not path:
            return False
        return self.workspace.add_project_path(path)

    # ------------------------------------------------------------------

    def definitions(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="GetActiveEditor",
                description=(
                    "Get active editor metadata. Returns {path, cursorPosition: {row, column}, "
                    "grammar, modified, lineCount, charCount}. Use ReadText to get content."
                ),
                input_schema=_object_schema(),
                annotations=READ_ONLY,
                execute=self.get_active_editor,
                failure_message=NO_ACTIVE_EDITOR,
            ),
            ToolDefinition(
                name="ReadText",
                description=(
                    "Read buffer content from active editor (includes unsaved changes). "
                    "Without start/end: returns full content. With start/end: returns text in that range."
                ),
                input_schema=_object_schema({
                    "start": _position_schema("Start position (0-indexed). If omitted, reads from beginning."),
                    "end": _position_schema("End position (0-indexed). If omitted, reads to end of file."),
                }),
                annotations=READ_ONLY,
                execute=self.read_text,
                failure_message=NO_ACTIVE_EDITOR,
            ),
            ToolDefinition(
                name="OpenFile",
                description=(
                    "Open a file in editor. All positions are 0-indexed. "
                    "Creates new file if path doesn't exist."
                ),
                input_schema=_object_schema(
                    {
                        "path": {"type": "string", "description": "File path (absolute or relative to project root)"},
                        "row": {"type": "number", "description": "Row to navigate to (0-indexed, optional)"},
                        "column": {"type": "number", "description": "Column to navigate to (0-indexed, optional)"},
                    },
                    required=["path"],
                ),
                annotations=MUTATING,
                execute=self.open_file,
                validators={"path": base.string},
                format=lambda result, args: {"opened": result},
            ),
            ToolDefinition(
                name="GetProjectPaths",
                description="Get project root folders. Returns string[] of absolute paths. Empty array if no project open.",
                input_schema=_object_schema(),
                annotations=READ_ONLY,
                execute=self.get_project_paths,
            ),
            ToolDefinition(
                name="SaveFile",
                description="Save a file. If path omitted, saves active editor. Fails if the file is not open.",
                input_schema=_object_schema({
                    "path": {"type": "string", "description": "File path to save (optional, defaults to active editor)"},
                }),
                annotations=MUTATING,
                execute=self.save_file,
                validators={"path": base.optional},
                format=lambda result, args: {"saved": result},
                failure_message="No matching editor to save",
            ),
            ToolDefinition(
                name="GetSelections",
                description=(
                    "Get all selections/cursors. Returns array of {text, isEmpty, range: {start: {row, column}, "
                    "end: {row, column}}} (0-indexed). First element is primary selection."
                ),
                input_schema=_object_schema(),
                annotations=READ_ONLY,
                execute=self.get_selections,
                failure_message=NO_ACTIVE_EDITOR,
            ),
            ToolDefinition(
                name="SetSelections",
                description=(
                    "Set selections/cursors in active editor. All positions are 0-indexed. If end equals start "
                    "(or omitted), places cursor without selection. First selection becomes primary. "
                    "Returns {set: true, count}."
                ),
                input_schema=_object_schema(
                    {
                        "selections": {
                            "type": "array",
                            "description": "Array of selection ranges to set",
                            "items": _object_schema(
                                {
                                    "start": _position_schema("Start position (0-indexed)"),
                                    "end": _position_schema(
                                        "End position (0-indexed). Omit or set equal to start for cursor-only."
                                    ),
                                },
                                required=["start"],
                            ),
                            "minItems": 1,
                        },
                    },
                    required=["selections"],
                ),
                annotations=MUTATING,
                execute=self.set_selections,
                validators={"selections": base.array},
                format=lambda result, args: {"set": True, **result},
                failure_message=NO_ACTIVE_EDITOR,
            ),
            ToolDefinition(
                name="InsertText",
                description=(
                    "Insert text into active editor. Without start/end: inserts at cursor or replaces selection. "
                    "With start/end: replaces text in that range. Returns {inserted: true, path, oldText?}."
                ),
                input_schema=_object_schema(
                    {
                        "text": {"type": "string", "description": "The text to insert"},
                        "start": _position_schema("Start position (0-indexed). If omitted, inserts at cursor."),
                        "end": _position_schema("End position (0-indexed). Required if start is provided."),
                    },
                    required=["text"],
                ),
                annotations=MUTATING,
                execute=self.insert_text,
                validators={"text": base.string},
                format=lambda result, args: {"inserted": True, **result},
                failure_message=NO_ACTIVE_EDITOR,
            ),
            ToolDefinition(
                name="CloseFile",
                description=(
                    "Close an editor tab. If path omitted, closes active editor. "
                    "Unsaved changes are discarded unless save=true."
                ),
                input_schema=_object_schema({
                    "path": {"type": "string", "description": "File path to close (optional, defaults to active editor)"},
                    "save": {"type": "boolean", "description": "Save before closing if modified (default: false)"},
                }),
                annotations={"readOnlyHint": False, "destructiveHint": True},
                execute=self.close_file,
                format=lambda result, args: {"closed": result},
                failure_message="No matching editor to close",
            ),
            ToolDefinition(
                name="AddProjectPath",
                description="Add a folder to project roots without removing existing paths. Fails if the folder does not exist.",
                input_schema=_object_schema(
                    {"path": {"type": "string", "description": "Absolute folder path to add"}},
                    required=["path"],
                ),
                annotations=MUTATING,
                execute=self.add_project_path,
                validators={"path": base.string},
                format=lambda result, args: {"added": result},
                failure_message="Path is not a folder",
            ),
        ]


def create_builtin_registry(workspace: EditorWorkspace) -> ToolRegistry:
    """Registry holding every built-in editor tool bound to ``workspace``."""
    registry = ToolRegistry(EditorTools(workspace).definitions())
    logger.debug(f"Built-in tools: {', '.join(registry.names())}")
    return registry
