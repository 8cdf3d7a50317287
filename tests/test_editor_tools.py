"""
Tests for the built-in editor tools over the in-memory workspace.
"""

import pytest

from mcp_bridge.workspace import InMemoryWorkspace, MemoryBuffer, Position

EXPECTED_TOOLS = [
    "GetActiveEditor",
    "ReadText",
    "OpenFile",
    "GetProjectPaths",
    "SaveFile",
    "GetSelections",
    "SetSelections",
    "InsertText",
    "CloseFile",
    "AddProjectPath",
]


async def open_main(executor, **extra):
    result = await executor.execute("OpenFile", {"path": "main.py", **extra})
    assert result.success, result.error
    return result


class TestRegistry:

    def test_all_tools_registered(self, builtins):
        assert builtins.names() == EXPECTED_TOOLS

    def test_annotations(self, builtins):
        assert builtins.lookup("GetActiveEditor").annotations == {"readOnlyHint": True}
        assert builtins.lookup("CloseFile").annotations["destructiveHint"] is True


class TestNoActiveEditor:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,args", [
        ("GetActiveEditor", {}),
        ("ReadText", {}),
        ("GetSelections", {}),
        ("InsertText", {"text": "x"}),
        ("SetSelections", {"selections": [{"start": {"row": 0, "column": 0}}]}),
    ])
    async def test_reports_no_active_editor(self, executor, name, args):
        result = await executor.execute(name, args)
        assert result.to_dict() == {"success": False, "error": "No active editor"}

    @pytest.mark.asyncio
    async def test_save_and_close_without_editor(self, executor):
        assert (await executor.execute("SaveFile", {})).success is False
        assert (await executor.execute("CloseFile", {})).success is False


class TestEditing:

    @pytest.mark.asyncio
    async def test_open_and_inspect(self, executor, project_dir):
        result = await open_main(executor)
        assert result.data == {"opened": True}

        info = (await executor.execute("GetActiveEditor", {})).data
        assert info["path"] == str(project_dir / "main.py")
        assert info["grammar"] == "Python"
        assert info["modified"] is False
        assert info["lineCount"] == 3
        assert info["cursorPosition"] == {"row": 0, "column": 0}

    @pytest.mark.asyncio
    async def test_open_navigates_to_row(self, executor):
        await open_main(executor, row=1, column=2)
        info = (await executor.execute("GetActiveEditor", {})).data
        assert info["cursorPosition"] == {"row": 1, "column": 2}

    @pytest.mark.asyncio
    async def test_read_text_range(self, executor):
        await open_main(executor)
        full = (await executor.execute("ReadText", {})).data
        assert full["content"] == "import os\nprint('hi')\n"

        ranged = (await executor.execute("ReadText", {
            "start": {"row": 0, "column": 7},
            "end": {"row": 1, "column": 5},
        })).data
        assert ranged["content"] == "os\nprint"
        assert ranged["range"] == {"start": {"row": 0, "column": 7}, "end": {"row": 1, "column": 5}}

    @pytest.mark.asyncio
    async def test_insert_at_cursor_then_save(self, executor, project_dir):
        await open_main(executor)
        result = await executor.execute("InsertText", {"text": "# header\n"})
        assert result.data["inserted"] is True

        assert (await executor.execute("GetActiveEditor", {})).data["modified"] is True
        saved = await executor.execute("SaveFile", {})
        assert saved.data == {"saved": True}
        assert (project_dir / "main.py").read_text(encoding="utf-8").startswith("# header\nimport os")

    @pytest.mark.asyncio
    async def test_insert_replaces_range(self, executor):
        await open_main(executor)
        result = await executor.execute("InsertText", {
            "text": "sys",
            "start": {"row": 0, "column": 7},
            "end": {"row": 0, "column": 9},
        })
        assert result.data["oldText"] == "os"
        content = (await executor.execute("ReadText", {})).data["content"]
        assert content.startswith("import sys\n")

    @pytest.mark.asyncio
    async def test_set_and_get_selections(self, executor):
        await open_main(executor)
        result = await executor.execute("SetSelections", {"selections": [
            {"start": {"row": 0, "column": 0}, "end": {"row": 0, "column": 6}},
            {"start": {"row": 1, "column": 0}},
        ]})
        assert result.data == {"set": True, "count": 2}

        selections = (await executor.execute("GetSelections", {})).data
        assert selections[0]["text"] == "import"
        assert selections[0]["isEmpty"] is False
        assert selections[1]["isEmpty"] is True

    @pytest.mark.asyncio
    async def test_set_selections_requires_items(self, executor):
        await open_main(executor)
        result = await executor.execute("SetSelections", {"selections": []})
        assert result.error == "selections array is required"

    @pytest.mark.asyncio
    async def test_close_file(self, executor, project_dir):
        await open_main(executor)
        closed = await executor.execute("CloseFile", {"path": str(project_dir / "main.py")})
        assert closed.data == {"closed": True}
        assert (await executor.execute("GetActiveEditor", {})).success is False

    @pytest.mark.asyncio
    async def test_close_unknown_path(self, executor):
        result = await executor.execute("CloseFile", {"path": "/not/open.py"})
        assert result.to_dict() == {"success": False, "error": "No matching editor to close"}


class TestProjectPaths:

    @pytest.mark.asyncio
    async def test_get_and_add(self, executor, project_dir, tmp_path_factory):
        extra = tmp_path_factory.mktemp("extra")
        added = await executor.execute("AddProjectPath", {"path": str(extra)})
        assert added.data == {"added": True}

        paths = (await executor.execute("GetProjectPaths", {})).data
        assert paths == [str(project_dir), str(extra.resolve())]

    @pytest.mark.asyncio
    async def test_add_missing_folder(self, executor, tmp_path):
        result = await executor.execute("AddProjectPath", {"path": str(tmp_path / "missing")})
        assert result.to_dict() == {"success": False, "error": "Path is not a folder"}

    @pytest.mark.asyncio
    async def test_add_requires_path(self, executor):
        result = await executor.execute("AddProjectPath", {})
        assert result.error == "path is required"

    @pytest.mark.asyncio
    async def test_empty_project_is_success(self):
        from mcp_bridge.executor import ToolExecutor
        from mcp_bridge.tools import create_builtin_registry

        executor = ToolExecutor(create_builtin_registry(InMemoryWorkspace()))
        result = await executor.execute("GetProjectPaths", {})
        assert result.to_dict() == {"success": True, "data": []}


class TestMemoryBuffer:

    def test_multi_cursor_insert(self):
        buffer = MemoryBuffer(text="ab\ncd")
        buffer.set_selections([
            (Position(0, 1), Position(0, 1)),
            (Position(1, 1), Position(1, 1)),
        ])
        buffer.insert_text("X")

        assert buffer.get_text() == "aXb\ncXd"
        assert buffer.get_selections() == [
            (Position(0, 2), Position(0, 2)),
            (Position(1, 2), Position(1, 2)),
        ]

    def test_positions_are_clamped(self):
        buffer = MemoryBuffer(text="abc")
        assert buffer.get_text_in_range(Position(0, 1), Position(5, 99)) == "bc"
