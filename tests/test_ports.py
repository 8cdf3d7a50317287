"""
Unit tests for port probing.
"""

import socket

import pytest

from mcp_bridge import ports
from mcp_bridge.ports import PortUnavailableError, find_available_port, is_port_available


class TestFindAvailablePort:

    def test_skips_occupied_ports(self, monkeypatch):
        probed = []

        def fake_probe(port, host):
            probed.append(port)
            return port >= 3003

        monkeypatch.setattr(ports, "is_port_available", fake_probe)

        assert find_available_port(3000, "127.0.0.1", 5) == 3003
        assert probed == [3000, 3001, 3002, 3003]

    def test_first_port_free(self, monkeypatch):
        monkeypatch.setattr(ports, "is_port_available", lambda port, host: True)
        assert find_available_port(4100) == 4100

    def test_exhaustion_names_start_and_attempts(self, monkeypatch):
        monkeypatch.setattr(ports, "is_port_available", lambda port, host: False)

        with pytest.raises(PortUnavailableError) as excinfo:
            find_available_port(3000, "127.0.0.1", 5)

        message = str(excinfo.value)
        assert "5 attempts" in message
        assert "3000" in message
        assert excinfo.value.start_port == 3000
        assert excinfo.value.max_attempts == 5

    def test_default_attempts(self, monkeypatch):
        probed = []
        monkeypatch.setattr(ports, "is_port_available", lambda port, host: probed.append(port) and False)

        with pytest.raises(PortUnavailableError):
            find_available_port(5000)
        assert len(probed) == 100


class TestIsPortAvailable:

    def test_detects_bound_port(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
            holder.bind(("127.0.0.1", 0))
            holder.listen(1)
            port = holder.getsockname()[1]

            assert is_port_available(port, "127.0.0.1") is False

    def test_free_port(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            port = s.getsockname()[1]

        assert is_port_available(port, "127.0.0.1") is True

    def test_real_probe_moves_past_occupied_port(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
            holder.bind(("127.0.0.1", 0))
            holder.listen(1)
            port = holder.getsockname()[1]

            found = find_available_port(port, "127.0.0.1", 10)
            assert port < found < port + 10
