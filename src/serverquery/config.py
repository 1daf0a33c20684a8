"""Client configuration.

Values can be given directly or read from the environment:

    SERVERQUERY_HOST      server address (default: 127.0.0.1)
    SERVERQUERY_PORT      query port (default: 10011)
    SERVERQUERY_TIMEOUT   per-command timeout in seconds (default: none)
    SERVERQUERY_PIPELINE  "0" to wait for each response before sending the next
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 10011


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ClientConfig:
    """Configuration for QueryClient and its transports."""

    # Connection
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    connect_timeout: float = 10.0
    encoding: str = "utf-8"

    # Largest single inbound line; list responses arrive as one line
    read_limit: int = 16 * 1024 * 1024

    # Greeting lines sent by the server on connect ("TS3" + welcome text)
    banner_lines: int = 2

    # Commands
    command_timeout: float | None = None  # None = wait until the status line arrives
    pipeline: bool = True  # False = transmit only after the previous response completed

    @classmethod
    def from_env(cls, **overrides: object) -> ClientConfig:
        """Build a config from SERVERQUERY_* variables, then apply overrides."""
        values: dict[str, object] = {}
        if host := os.getenv("SERVERQUERY_HOST"):
            values["host"] = host
        if port := os.getenv("SERVERQUERY_PORT"):
            values["port"] = int(port)
        if timeout := os.getenv("SERVERQUERY_TIMEOUT"):
            values["command_timeout"] = float(timeout)
        if pipeline := os.getenv("SERVERQUERY_PIPELINE"):
            values["pipeline"] = _env_bool(pipeline)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]
