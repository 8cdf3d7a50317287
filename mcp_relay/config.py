"""Relay configuration, read from the environment (and a .env file if present)."""

import os

from pydantic import BaseModel, Field

DEFAULT_BRIDGE_HOST = "127.0.0.1"
DEFAULT_BRIDGE_PORT = 3000


class RelayConfig(BaseModel):
    bridge_host: str = DEFAULT_BRIDGE_HOST
    bridge_port: int = Field(DEFAULT_BRIDGE_PORT, ge=1, le=65535)

    @classmethod
    def from_env(cls) -> "RelayConfig":
        return cls(
            bridge_host=os.getenv("MCP_BRIDGE_HOST") or DEFAULT_BRIDGE_HOST,
            bridge_port=int(os.getenv("MCP_BRIDGE_PORT") or DEFAULT_BRIDGE_PORT),
        )

    @property
    def base_url(self) -> str:
        return f"http://{self.bridge_host}:{self.bridge_port}"
