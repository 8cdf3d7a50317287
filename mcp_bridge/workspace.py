"""
Editor workspace API used by the built-in tools.

The bridge does not implement an editor. A host embeds the bridge and hands
it an EditorWorkspace backed by its own buffers; InMemoryWorkspace is the
file-backed implementation used when the bridge runs on its own and in tests.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    """Zero-based buffer position."""
    row: int
    column: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        return cls(row=int(data["row"]), column=int(data["column"]))

    def to_dict(self) -> Dict[str, int]:
        return {"row": self.row, "column": self.column}


Range = Tuple[Position, Position]


class TextBuffer(ABC):
    """An open editor tab."""

    @property
    @abstractmethod
    def path(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def modified(self) -> bool:
        pass

    @property
    def grammar(self) -> str:
        return "Plain Text"

    @abstractmethod
    def get_text(self) -> str:
        pass

    @abstractmethod
    def get_text_in_range(self, start: Position, end: Position) -> str:
        pass

    @abstractmethod
    def set_text_in_range(self, start: Position, end: Position, text: str) -> None:
        pass

    @abstractmethod
    def insert_text(self, text: str) -> None:
        """Insert at every cursor, replacing selected text."""
        pass

    @abstractmethod
    def get_cursor(self) -> Position:
        pass

    @abstractmethod
    def get_selections(self) -> List[Range]:
        pass

    @abstractmethod
    def set_selections(self, ranges: List[Range]) -> None:
        pass

    def line_count(self) -> int:
        return self.get_text().count("\n") + 1

    def end_position(self) -> Position:
        lines = self.get_text().split("\n")
        return Position(len(lines) - 1, len(lines[-1]))


class EditorWorkspace(ABC):
    """The slice of an editor's API the built-in tools need."""

    @abstractmethod
    def active_buffer(self) -> Optional[TextBuffer]:
        pass

    @abstractmethod
    def buffers(self) -> List[TextBuffer]:
        pass

    def find_buffer(self, path: str) -> Optional[TextBuffer]:
        for buffer in self.buffers():
            if buffer.path == path:
                return buffer
        return None

    @abstractmethod
    async def open(self, path: str, row: Optional[int] = None, column: Optional[int] = None) -> TextBuffer:
        pass

    @abstractmethod
    async def save(self, buffer: TextBuffer) -> None:
        pass

    @abstractmethod
    def close(self, buffer: TextBuffer) -> None:
        pass

    @abstractmethod
    def project_paths(self) -> List[str]:
        pass

    @abstractmethod
    def add_project_path(self, path: str) -> bool:
        pass


# ============== In-memory implementation ==============


class MemoryBuffer(TextBuffer):
    """A buffer holding its text as a string with a list of selections."""

    def __init__(self, path: Optional[str] = None, text: str = ""):
        self._path = path
        self._text = text
        self._modified = False
        self._selections: List[Range] = [(Position(0, 0), Position(0, 0))]

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def grammar(self) -> str:
        if self._path and self._path.endswith(".py"):
            return "Python"
        return "Plain Text"

    def mark_saved(self) -> None:
        self._modified = False

    def get_text(self) -> str:
        return self._text

    def _offset(self, position: Position) -> int:
        lines = self._text.split("\n")
        row = min(max(position.row, 0), len(lines) - 1)
        column = min(max(position.column, 0), len(lines[row]))
        return sum(len(line) + 1 for line in lines[:row]) + column

    def _position(self, offset: int) -> Position:
        before = self._text[:offset]
        row = before.count("\n")
        return Position(row, offset - (before.rfind("\n") + 1))

    def _ordered(self, start: Position, end: Position) -> Tuple[int, int]:
        a, b = self._offset(start), self._offset(end)
        return (a, b) if a <= b else (b, a)

    def get_text_in_range(self, start: Position, end: Position) -> str:
        a, b = self._ordered(start, end)
        return self._text[a:b]

    def set_text_in_range(self, start: Position, end: Position, text: str) -> None:
        a, b = self._ordered(start, end)
        self._text = self._text[:a] + text + self._text[b:]
        self._modified = True
        cursor = self._position(a + len(text))
        self._selections = [(cursor, cursor)]

    def insert_text(self, text: str) -> None:
        # Apply from the bottom up so earlier offsets stay valid.
        spans = sorted((self._ordered(s, e) for s, e in self._selections), reverse=True)
        for a, b in spans:
            self._text = self._text[:a] + text + self._text[b:]
        shift = 0
        cursors = []
        for a, b in sorted(spans):
            end = a + shift + len(text)
            cursors.append(end)
            shift += len(text) - (b - a)
        self._selections = [(self._position(c), self._position(c)) for c in cursors]
        self._modified = True

    def get_cursor(self) -> Position:
        return self._selections[0][1]

    def get_selections(self) -> List[Range]:
        return list(self._selections)

    def set_selections(self, ranges: List[Range]) -> None:
        if not ranges:
            raise ValueError("At least one selection is required")
        self._selections = [
            (self._position(self._offset(s)), self._position(self._offset(e)))
            for s, e in ranges
        ]


class InMemoryWorkspace(EditorWorkspace):
    """File-backed workspace with in-memory buffers."""

    def __init__(self, project_paths: Optional[List[str]] = None):
        self._buffers: List[MemoryBuffer] = []
        self._active: Optional[MemoryBuffer] = None
        self._project_paths: List[str] = list(project_paths or [])

    def active_buffer(self) -> Optional[MemoryBuffer]:
        return self._active

    def buffers(self) -> List[TextBuffer]:
        return list(self._buffers)

    def _resolve(self, path: str) -> str:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute() and self._project_paths:
            candidate = Path(self._project_paths[0]) / candidate
        return str(candidate)

    async def open(self, path: str, row: Optional[int] = None, column: Optional[int] = None) -> MemoryBuffer:
        resolved = self._resolve(path)
        buffer = self.find_buffer(resolved)
        if buffer is None:
            file_path = Path(resolved)
            text = file_path.read_text(encoding="utf-8") if file_path.is_file() else ""
            buffer = MemoryBuffer(resolved, text)
            self._buffers.append(buffer)
            logger.debug(f"Opened buffer: {resolved}")

        if row is not None:
            cursor = Position(row, column or 0)
            buffer.set_selections([(cursor, cursor)])

        self._active = buffer
        return buffer

    async def save(self, buffer: TextBuffer) -> None:
        if not buffer.path:
            raise ValueError("Cannot save a buffer without a path")
        file_path = Path(buffer.path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(buffer.get_text(), encoding="utf-8")
        if isinstance(buffer, MemoryBuffer):
            buffer.mark_saved()

    def close(self, buffer: TextBuffer) -> None:
        if buffer in self._buffers:
            self._buffers.remove(buffer)
        if self._active is buffer:
            self._active = self._buffers[-1] if self._buffers else None

    def project_paths(self) -> List[str]:
        return list(self._project_paths)

    def add_project_path(self, path: str) -> bool:
        folder = Path(path).expanduser()
        if not folder.is_dir():
            return False
        resolved = str(folder.resolve())
        if resolved not in self._project_paths:
            self._project_paths.append(resolved)
        return True
