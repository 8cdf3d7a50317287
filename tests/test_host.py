"""
Tests for BridgeHost: external tool consumption, disposal and lifecycle.
"""

import logging
import socket
import sys

import httpx
import pytest

from mcp_bridge.base import ToolDefinition
from mcp_bridge.config import BridgeConfig
from mcp_bridge.executor import ToolExecutor
from mcp_bridge.host import BridgeHost


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def host(workspace) -> BridgeHost:
    return BridgeHost(workspace, BridgeConfig(port=_free_port()))


def tool_names(host: BridgeHost):
    return [t["name"] for t in ToolExecutor(host.builtins, host.external).list_tools()]


class TestConsumeTools:

    def test_register_and_dispose(self, host, echo_tool):
        builtin_count = len(host.builtins)

        registration = host.consume_tools([echo_tool])
        assert registration.names == ["Echo"]
        assert "Echo" in tool_names(host)

        registration.dispose()
        names = tool_names(host)
        assert "Echo" not in names
        assert len(names) == builtin_count

    def test_dispose_is_idempotent(self, host, echo_tool):
        registration = host.consume_tools([echo_tool])
        registration.dispose()
        registration.dispose()
        assert registration.disposed is True

    def test_mapping_tools(self, host):
        registration = host.consume_tools([{
            "name": "Shout",
            "description": "Upper-case the text",
            "inputSchema": {"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]},
            "execute": lambda args: args["text"].upper(),
        }])

        assert registration.names == ["Shout"]
        definition = host.external.lookup("Shout")
        assert isinstance(definition, ToolDefinition)
        assert definition.metadata()["inputSchema"]["required"] == ["text"]

    @pytest.mark.asyncio
    async def test_consumed_tool_is_executable(self, host):
        host.consume_tools([{"name": "Shout", "execute": lambda args: args["text"].upper()}])

        result = await ToolExecutor(host.builtins, host.external).execute("Shout", {"text": "hi"})
        assert result.to_dict() == {"success": True, "data": "HI"}

    def test_object_tools(self, host):
        class Counter:
            name = "Counter"
            description = "Counts calls"

            def __init__(self):
                self.calls = 0

            def execute(self, args):
                self.calls += 1
                return {"calls": self.calls}

        registration = host.consume_tools((Counter(),))
        assert registration.names == ["Counter"]

    def test_invalid_entries_skipped(self, host, echo_tool, caplog):
        with caplog.at_level(logging.ERROR, logger="mcp_bridge.host"):
            registration = host.consume_tools([
                {"name": "NoExecute"},
                {"execute": lambda args: True},
                object(),
                echo_tool,
            ])

        assert registration.names == ["Echo"]
        assert caplog.text.count("Invalid tool definition") == 3

    def test_non_list_rejected(self, host, echo_tool, caplog):
        with caplog.at_level(logging.ERROR, logger="mcp_bridge.host"):
            registration = host.consume_tools(echo_tool)

        assert registration.names == []
        assert len(host.external) == 0
        assert "must provide a list of tools" in caplog.text

    def test_external_cannot_shadow_builtin(self, host):
        host.consume_tools([{"name": "GetProjectPaths", "execute": lambda args: ["shadow"]}])
        names = tool_names(host)

        # listed twice, but the built-in wins on execution
        assert names.count("GetProjectPaths") == 2
        executor = ToolExecutor(host.builtins, host.external)
        assert executor.resolve("GetProjectPaths") is host.builtins.lookup("GetProjectPaths")


class TestLifecycle:

    def test_status_when_stopped(self, host):
        assert host.status() == {"running": False, "host": None, "port": None, "url": None}

        service = host.provide_service()
        assert service.is_running() is False
        assert service.get_bridge_port() is None
        assert service.get_relay_command() == [sys.executable, "-m", "mcp_relay"]

    @pytest.mark.asyncio
    async def test_start_and_stop(self, host, echo_tool):
        bridge = await host.start()
        try:
            assert await host.start() is bridge
            assert host.status()["running"] is True
            assert host.status()["url"] == bridge.url
            assert host.provide_service().get_bridge_port() == bridge.port

            host.consume_tools([echo_tool])
            async with httpx.AsyncClient() as http:
                tools = (await http.get(f"{bridge.url}/tools")).json()["tools"]
                response = await http.post(f"{bridge.url}/tools/Echo", json={"x": 1})

            assert tools[-1]["name"] == "Echo"
            assert response.json() == {"success": True, "data": {"echo": {"x": 1}}}
        finally:
            await host.stop()

        assert host.status()["running"] is False
        assert not bridge.running

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, host):
        await host.stop()
        assert host.bridge is None
