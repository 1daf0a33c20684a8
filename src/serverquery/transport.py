"""Client-side transport abstraction for QueryClient.

A transport moves text lines: it writes serialized commands and yields
decoded inbound lines. It knows nothing about commands, responses or
notifications; that is the job of the demuxer and the correlator.

Architecture:
- ClientTransport is the PROTOCOL (interface) for all client transports
- TcpClientTransport talks to a real server over asyncio streams
- MockClientTransport keeps everything in memory for tests
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from .config import ClientConfig

logger = logging.getLogger(__name__)

BANNER = "TS3"


class TransportState(str, Enum):
    """Connection state machine."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


@runtime_checkable
class ClientTransport(Protocol):
    """Protocol for client transports.

    All transports must implement:
    - connect/disconnect: Lifecycle management
    - write: Transmit one serialized command line
    - lines: Yield decoded inbound lines until the connection ends
    """

    @property
    def state(self) -> TransportState:
        """Current connection state."""
        ...

    @property
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        ...

    async def connect(self) -> None:
        """Establish the connection.

        Raises:
            ConnectionError: If connection fails
        """
        ...

    async def disconnect(self) -> None:
        """Close the connection gracefully."""
        ...

    async def write(self, line: str) -> None:
        """Transmit one newline-terminated line.

        Raises:
            ConnectionError: If not connected
        """
        ...

    def lines(self) -> AsyncIterator[str]:
        """Yield inbound lines without their terminators."""
        ...


class BaseClientTransport(ABC):
    """Base class for client transports with common functionality."""

    def __init__(self, config: ClientConfig):
        self.config = config
        self._state = TransportState.DISCONNECTED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> TransportState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        return self._state == TransportState.CONNECTED

    async def connect(self) -> None:
        """Establish connection."""
        async with self._lock:
            if self._state == TransportState.CONNECTED:
                return

            self._state = TransportState.CONNECTING
            try:
                await self._do_connect()
                self._state = TransportState.CONNECTED
                logger.info(f"{self.__class__.__name__} connected")
            except Exception as e:
                self._state = TransportState.DISCONNECTED
                raise ConnectionError(f"Failed to connect: {e}") from e

    async def disconnect(self) -> None:
        """Close the connection."""
        async with self._lock:
            if self._state in (TransportState.DISCONNECTED, TransportState.CLOSED):
                return

            self._state = TransportState.CLOSED
            await self._do_disconnect()
            self._state = TransportState.DISCONNECTED
            logger.info(f"{self.__class__.__name__} disconnected")

    async def write(self, line: str) -> None:
        """Transmit one line."""
        if not self.is_connected:
            raise ConnectionError("Transport not connected")
        await self._do_write(line)

    async def lines(self) -> AsyncIterator[str]:
        """Yield decoded lines until the stream ends."""
        async for line in self._read_lines():
            yield line

    # Abstract methods for subclasses
    @abstractmethod
    async def _do_connect(self) -> None:
        """Implementation-specific connection logic."""
        ...

    @abstractmethod
    async def _do_disconnect(self) -> None:
        """Implementation-specific disconnection logic."""
        ...

    @abstractmethod
    async def _do_write(self, line: str) -> None:
        """Implementation-specific send logic."""
        ...

    @abstractmethod
    def _read_lines(self) -> AsyncIterator[str]:
        """Implementation-specific receive logic. Must be an async generator."""
        ...

    async def __aenter__(self) -> BaseClientTransport:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()


class TcpClientTransport(BaseClientTransport):
    """Transport over a plain TCP connection to the query port.

    On connect the server greets with ``TS3`` and a welcome line; those
    are consumed here so they never reach the demuxer. The server ends
    lines with ``\\n\\r``, so both characters are stripped from each line.
    """

    def __init__(self, config: ClientConfig | None = None):
        super().__init__(config or ClientConfig())
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    async def _do_connect(self) -> None:
        self._reader, self._writer = await asyncio.wait_for(
            asyncio.open_connection(
                self.config.host, self.config.port, limit=self.config.read_limit
            ),
            timeout=self.config.connect_timeout,
        )
        await self._skip_banner()
        logger.info(f"Connected to {self.config.host}:{self.config.port}")

    async def _skip_banner(self) -> None:
        """Consume the greeting lines sent before any command."""
        remaining = self.config.banner_lines
        first = True
        while remaining > 0:
            line = await asyncio.wait_for(self._readline(), timeout=self.config.connect_timeout)
            if line is None:
                raise ConnectionError("Connection closed during greeting")
            if not line:
                continue
            if first and line != BANNER:
                logger.warning(f"Unexpected greeting {line[:50]!r}, expected {BANNER!r}")
            logger.debug(f"[banner] {line}")
            first = False
            remaining -= 1

    async def _readline(self) -> str | None:
        if not self._reader:
            raise ConnectionError("Not connected")
        raw = await self._reader.readline()
        if not raw:
            return None
        return raw.decode(self.config.encoding, errors="replace").strip("\r\n")

    async def _do_disconnect(self) -> None:
        if self._writer:
            self._writer.close()
            with contextlib.suppress(ConnectionError, OSError):
                await self._writer.wait_closed()
        self._reader = None
        self._writer = None

    async def _do_write(self, line: str) -> None:
        if not self._writer:
            raise ConnectionError("Not connected")
        self._writer.write(line.encode(self.config.encoding))
        await self._writer.drain()

    async def _read_lines(self) -> AsyncIterator[str]:
        while True:
            line = await self._readline()
            if line is None:
                # EOF - server closed the connection
                break
            yield line


class MockClientTransport(BaseClientTransport):
    """Mock transport for testing.

    Records written lines and lets tests inject inbound lines.
    No actual I/O - everything is in-memory.

    Usage:
        transport = MockClientTransport()
        transport.set_response("version", ["version=3.13.7 build=1", "error id=0 msg=ok"])

        client = QueryClient(transport=transport)
        await client.connect()
        rows = await client.send("version")

        assert transport.written == ["version\\n"]
    """

    def __init__(self, config: ClientConfig | None = None) -> None:
        super().__init__(config or ClientConfig())
        self._responses: dict[str, list[str]] = {}
        self._written: list[str] = []
        self._inbound: asyncio.Queue[str | None] = asyncio.Queue()
        self.write_error: Exception | None = None
        self._stream_closed = False

    @property
    def written(self) -> list[str]:
        """Get all lines written through this transport."""
        return self._written.copy()

    def set_response(self, verb: str, lines: list[str]) -> None:
        """Set canned inbound lines queued whenever ``verb`` is written."""
        self._responses[verb] = lines

    def feed(self, *lines: str) -> None:
        """Inject inbound lines."""
        for line in lines:
            self._inbound.put_nowait(line)

    def close_stream(self) -> None:
        """Simulate the server closing the connection."""
        self._stream_closed = True
        self._inbound.put_nowait(None)

    async def _do_connect(self) -> None:
        if self._stream_closed:
            # Drop the end-of-stream marker and leftovers of the previous connection
            self._inbound = asyncio.Queue()
            self._stream_closed = False

    async def _do_disconnect(self) -> None:
        self.close_stream()

    async def _do_write(self, line: str) -> None:
        """Record line and queue canned response."""
        if self.write_error is not None:
            raise self.write_error
        self._written.append(line)
        verb = line.split(" ", 1)[0].strip()
        self.feed(*self._responses.get(verb, []))

    async def _read_lines(self) -> AsyncIterator[str]:
        while True:
            line = await self._inbound.get()
            if line is None:
                break
            yield line


# Factory functions


def create_tcp_transport(
    host: str = "127.0.0.1",
    port: int = 10011,
    connect_timeout: float = 10.0,
) -> TcpClientTransport:
    """Create a TCP transport for a query port."""
    return TcpClientTransport(ClientConfig(host=host, port=port, connect_timeout=connect_timeout))


def create_mock_transport() -> MockClientTransport:
    """Create a mock transport for testing."""
    return MockClientTransport()
