"""ServerQuery client.

Wires the protocol engine together:

    send() -> Command.to_line() -> transport.write()
    transport.lines() -> LineDemuxer -> EventDispatcher | ResponseCorrelator -> send() result

A single reader task drives the demuxer for the lifetime of the
connection, independent of whether anyone is awaiting a result, so
notifications never back up behind an unread response.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from .config import ClientConfig
from .correlator import PendingCall, ResponseCorrelator
from .demuxer import LineDemuxer
from .dispatcher import EventDispatcher, EventHandler
from .errors import ProtocolFramingError, TransportLostError
from .protocol.commands import Command, CommandData, CommandType
from .protocol.events import Row
from .transport import ClientTransport, MockClientTransport, TcpClientTransport

logger = logging.getLogger(__name__)

# Lifecycle events dispatched alongside server notifications
EVENT_CONNECT = "connect"
EVENT_CLOSE = "close"
EVENT_ERROR = "error"


class QueryClient:
    """Async ServerQuery client.

    Usage:
        async with QueryClient(ClientConfig(host="ts.example.org")) as client:
            await client.authenticate("serveradmin", "secret")
            await client.send("use", {"sid": 1})
            client.on("textmessage", lambda event: print(event.fields["msg"]))
            await client.send("servernotifyregister", {"event": "textserver"})
            for row in await client.send("clientlist", ["-uid"]):
                print(row["client_nickname"])

    Commands are transmitted immediately and resolved strictly in send
    order. With ``ClientConfig(pipeline=False)`` each command is only
    transmitted after the previous one's status line arrived.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: ClientTransport | None = None,
        *,
        logger: logging.Logger | None = None,
        debug: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._transport = transport or TcpClientTransport(self.config)
        self._logger = logger or logging.getLogger(__name__)
        self._debug_hook = debug

        self.dispatcher = EventDispatcher(logger=self._logger)
        self.correlator = ResponseCorrelator(logger=self._logger)
        self.demuxer = LineDemuxer(self.correlator, self.dispatcher, logger=self._logger)

        # Single-writer discipline: enqueue + write happen under this lock
        self._send_lock = asyncio.Lock()
        self._last_call: PendingCall | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._failure: BaseException | None = None
        self._closing = False

    @property
    def transport(self) -> ClientTransport:
        """Access the underlying transport."""
        return self._transport

    @property
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        return self._transport.is_connected

    @property
    def pending(self) -> int:
        """Number of commands waiting for their status line."""
        return len(self.correlator)

    async def connect(self) -> None:
        """Connect the transport and start the reader loop."""
        await self._transport.connect()
        self._closing = False
        self._failure = None
        self._reader_task = asyncio.create_task(self._read_loop())
        self.dispatcher.dispatch(EVENT_CONNECT, None)

    async def disconnect(self) -> None:
        """Stop reading, reject anything still pending and close the transport."""
        self._closing = True
        was_connected = self._transport.is_connected
        if self._reader_task:
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task
            self._reader_task = None

        self.correlator.drain(TransportLostError("Client disconnected"))
        await self._transport.disconnect()
        if was_connected:
            self.dispatcher.dispatch(EVENT_CLOSE, None)

    async def wait_closed(self) -> None:
        """Wait until the reader loop ends.

        Raises:
            ProtocolFramingError | TransportLostError: If the connection
                ended because of a failure.
        """
        if self._reader_task:
            with contextlib.suppress(asyncio.CancelledError):
                await asyncio.shield(self._reader_task)
        if self._failure is not None:
            raise self._failure

    async def send(
        self,
        verb: str | CommandType,
        data: CommandData = None,
        *,
        timeout: float | None = None,
    ) -> list[Row]:
        """Send a command and wait for its response rows.

        Args:
            verb: Command verb (e.g. "clientlist")
            data: Scalar, flag list, key/value mapping or list of mappings
            timeout: Seconds to wait (default: config.command_timeout).
                Timing out only abandons the wait; the command keeps its
                place in the queue.

        Returns:
            Entity rows of the response (possibly empty)

        Raises:
            CommandError: If the server answered with a non-zero status
            TransportLostError: If the connection died first
            ConnectionError: If not connected
        """
        return await self.execute(Command.create(verb, data), timeout=timeout)

    async def execute(self, command: Command, *, timeout: float | None = None) -> list[Row]:
        """Send a prebuilt command and wait for its response rows."""
        call = await self._transmit(command)

        if timeout is None:
            timeout = self.config.command_timeout

        # Shielded: cancelling this wait must not cancel the slot
        waiter = asyncio.shield(call.future)
        if timeout is None:
            return await waiter
        return await asyncio.wait_for(waiter, timeout)

    async def authenticate(self, username: str, password: str) -> list[Row]:
        """Log in with ServerQuery credentials."""
        return await self.execute(Command.login(username, password))

    def on(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to a notification (name without the ``notify`` prefix).

        Returns:
            Unsubscribe function
        """
        return self.dispatcher.on(event, handler)

    def once(self, event: str, handler: EventHandler) -> Callable[[], None]:
        return self.dispatcher.once(event, handler)

    def off(self, event: str, handler: EventHandler | None = None) -> None:
        self.dispatcher.off(event, handler)

    def on_data(self, line: str) -> None:
        """Feed one decoded inbound line.

        Raises:
            ProtocolFramingError: If the line cannot belong to any
                in-flight command.
        """
        self._trace("<-", line)
        self.demuxer.feed(line)

    def drain(self, exc: BaseException | None = None) -> int:
        """Reject every pending command (e.g. the transport was lost).

        Returns:
            Number of commands rejected
        """
        return self.correlator.drain(exc)

    async def _transmit(self, command: Command) -> PendingCall:
        if not self._transport.is_connected:
            raise ConnectionError("Transport not connected")

        line = command.to_line()
        async with self._send_lock:
            if not self.config.pipeline and self._last_call is not None:
                # Wait for the previous slot itself, not its caller
                await asyncio.wait({self._last_call.future})

            self._trace("->", self._redact(command, line))

            # Enqueue before writing so a fast response always finds its slot
            call = self.correlator.enqueue(command.verb)
            self._last_call = call
            try:
                await self._transport.write(line)
            except Exception as e:
                lost = TransportLostError(f"Failed to send {command.verb}: {e}")
                self.correlator.drain(lost)
                raise lost from e
        return call

    async def _read_loop(self) -> None:
        """Background task feeding inbound lines to the demuxer."""
        try:
            await self.demuxer.consume(self._traced(self._transport.lines()))
        except asyncio.CancelledError:
            raise
        except ProtocolFramingError as e:
            self._logger.error(f"Protocol desynchronized: {e}")
            await self._fail(e)
            return
        except Exception as e:
            self._logger.error(f"Read loop error: {e}")
            lost = TransportLostError(f"Transport error: {e}")
            lost.__cause__ = e
            await self._fail(lost)
            return

        if not self._closing:
            # EOF - server closed the connection
            self._logger.info("Connection closed by server")
            self.correlator.drain(TransportLostError("Connection closed by server"))
            await self._transport.disconnect()
            self.dispatcher.dispatch(EVENT_CLOSE, None)

    async def _fail(self, exc: BaseException) -> None:
        self._failure = exc
        self.correlator.drain(exc)
        self.dispatcher.dispatch(EVENT_ERROR, exc)
        await self._transport.disconnect()
        self.dispatcher.dispatch(EVENT_CLOSE, exc)

    async def _traced(self, lines: AsyncIterator[str]) -> AsyncIterator[str]:
        async for line in lines:
            self._trace("<-", line)
            yield line

    def _trace(self, direction: str, line: str) -> None:
        message = f"{direction} {line.rstrip()}"
        self._logger.debug(message)
        if self._debug_hook is None:
            return
        try:
            self._debug_hook(message)
        except Exception:
            self._logger.exception("Error in debug hook")

    @staticmethod
    def _redact(command: Command, line: str) -> str:
        if command.verb == CommandType.LOGIN.value:
            return f"{command.verb} ***"
        return line

    async def __aenter__(self) -> QueryClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()


# Factory functions


def create_client(
    host: str = "127.0.0.1",
    port: int = 10011,
    *,
    pipeline: bool = True,
    command_timeout: float | None = None,
    debug: Callable[[str], None] | None = None,
) -> QueryClient:
    """Create a client for a TCP query port."""
    config = ClientConfig(host=host, port=port, pipeline=pipeline, command_timeout=command_timeout)
    return QueryClient(config, TcpClientTransport(config), debug=debug)


def create_test_client(
    transport: MockClientTransport | None = None,
    config: ClientConfig | None = None,
) -> QueryClient:
    """Create a client backed by an in-memory transport."""
    return QueryClient(config, transport or MockClientTransport(config))
