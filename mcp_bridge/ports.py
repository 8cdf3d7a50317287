"""
Port allocation for the bridge listener.

Ports are checked by actually binding them, one after another, starting
from the requested port.
"""

import logging
import socket

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_MAX_ATTEMPTS = 100


class PortUnavailableError(RuntimeError):
    """Raised when no port in the probed range could be bound."""

    def __init__(self, start_port: int, max_attempts: int):
        self.start_port = start_port
        self.max_attempts = max_attempts
        super().__init__(
            f"Could not find available port after {max_attempts} attempts "
            f"starting from {start_port}"
        )


def socket_family(host: str) -> int:
    return socket.AF_INET6 if ":" in host else socket.AF_INET


def is_port_available(port: int, host: str = DEFAULT_HOST) -> bool:
    """Bind a throwaway socket to (host, port) and release it."""
    try:
        with socket.socket(socket_family(host), socket.SOCK_STREAM) as probe:
            probe.bind((host, port))
            probe.listen(1)
    except (OSError, OverflowError):
        return False
    return True


def find_available_port(
    start_port: int,
    host: str = DEFAULT_HOST,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> int:
    """
    Return the first bindable port in [start_port, start_port + max_attempts).

    Another process may still take the port between this check and the real
    listener binding it; callers get an OSError from their own bind then.
    """
    port = start_port
    for _ in range(max_attempts):
        if is_port_available(port, host):
            return port
        logger.debug(f"Port {port} in use, trying next")
        port += 1

    raise PortUnavailableError(start_port, max_attempts)
