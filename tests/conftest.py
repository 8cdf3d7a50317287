"""Shared fixtures for bridge and relay tests."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from mcp_bridge.base import ToolDefinition
from mcp_bridge.executor import ToolExecutor
from mcp_bridge.protocol import SessionStore
from mcp_bridge.registry import ToolRegistry
from mcp_bridge.server import create_app
from mcp_bridge.tools import create_builtin_registry
from mcp_bridge.workspace import InMemoryWorkspace


@pytest.fixture
def project_dir(tmp_path) -> Path:
    (tmp_path / "main.py").write_text("import os\nprint('hi')\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def workspace(project_dir) -> InMemoryWorkspace:
    return InMemoryWorkspace([str(project_dir)])


@pytest.fixture
def builtins(workspace) -> ToolRegistry:
    return create_builtin_registry(workspace)


@pytest.fixture
def external() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def executor(builtins, external) -> ToolExecutor:
    return ToolExecutor(builtins, external)


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def client(builtins, external, sessions) -> TestClient:
    return TestClient(create_app(builtins, external, sessions))


@pytest.fixture
def echo_tool() -> ToolDefinition:
    return ToolDefinition(
        name="Echo",
        description="Echo the arguments back",
        execute=lambda args: {"echo": args},
    )
