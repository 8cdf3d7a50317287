"""
Bridge configuration.

Values come from keyword arguments or from MCP_BRIDGE_* environment
variables.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field

from .ports import DEFAULT_HOST, DEFAULT_MAX_ATTEMPTS

DEFAULT_PORT = 3000

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class BridgeConfig(BaseModel):
    """Where the bridge listens and how it logs."""

    host: str = DEFAULT_HOST
    port: int = Field(DEFAULT_PORT, ge=1, le=65535)
    max_port_attempts: int = Field(DEFAULT_MAX_ATTEMPTS, ge=1)
    debug: bool = False

    @classmethod
    def from_env(cls) -> "BridgeConfig":
        return cls(
            host=os.getenv("MCP_BRIDGE_HOST", DEFAULT_HOST),
            port=int(os.getenv("MCP_BRIDGE_PORT", str(DEFAULT_PORT))),
            max_port_attempts=int(os.getenv("MCP_BRIDGE_MAX_PORT_ATTEMPTS", str(DEFAULT_MAX_ATTEMPTS))),
            debug=_env_flag(os.getenv("MCP_BRIDGE_DEBUG")),
        )

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else "INFO"
