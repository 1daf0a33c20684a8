"""Response Correlator - matches responses to in-flight commands.

ServerQuery has no correlation id on the wire. The server executes
commands one at a time in arrival order, so the only correct matching
is strict FIFO: every status line completes the oldest pending call.

A slot leaves the queue only when its status line arrives. A caller that
stops waiting (cancellation, timeout) must not remove it, or every
later response would be handed to the wrong command.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from .errors import ProtocolFramingError, TransportLostError
from .protocol.events import Row, StatusLine


class CallState(str, Enum):
    """Per-call state machine."""

    SENT = "sent"
    ACCUMULATING = "accumulating"
    COMPLETED = "completed"


@dataclass
class PendingCall:
    """A command waiting for its status line."""

    position: int
    verb: str
    future: asyncio.Future[list[Row]]
    rows: list[Row] = field(default_factory=list)
    state: CallState = CallState.SENT


def _mark_retrieved(future: asyncio.Future[list[Row]]) -> None:
    # Abandoned waiters must not produce "exception was never retrieved"
    if not future.cancelled():
        future.exception()


class ResponseCorrelator:
    """FIFO queue of pending calls.

    Only the head of the queue can be accumulating rows; everything
    behind it is still waiting for the server to get to it.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._queue: deque[PendingCall] = deque()
        self._positions = itertools.count()

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def is_idle(self) -> bool:
        return not self._queue

    @property
    def head(self) -> PendingCall | None:
        return self._queue[0] if self._queue else None

    def pending(self) -> list[PendingCall]:
        return list(self._queue)

    def enqueue(self, verb: str) -> PendingCall:
        """Register a command that is about to be transmitted."""
        future: asyncio.Future[list[Row]] = asyncio.get_running_loop().create_future()
        future.add_done_callback(_mark_retrieved)
        call = PendingCall(position=next(self._positions), verb=verb, future=future)
        self._queue.append(call)
        return call

    def add_rows(self, rows: list[Row], line: str | None = None) -> PendingCall:
        """Append data rows to the response currently being accumulated.

        Raises:
            ProtocolFramingError: If no command is in flight.
        """
        if not self._queue:
            raise ProtocolFramingError("Data line received with no command in flight", line)
        call = self._queue[0]
        call.rows.extend(rows)
        call.state = CallState.ACCUMULATING
        return call

    def resolve(self, status: StatusLine, line: str | None = None) -> PendingCall:
        """Complete the oldest pending call with a status line.

        Raises:
            ProtocolFramingError: If no command is in flight.
        """
        if not self._queue:
            raise ProtocolFramingError("Status line received with no command in flight", line)

        call = self._queue.popleft()
        call.state = CallState.COMPLETED

        if call.future.done():
            self._logger.debug(f"Dropping response for abandoned call #{call.position} ({call.verb})")
        elif status.ok:
            call.future.set_result(call.rows)
        else:
            call.future.set_exception(status.to_error(call.verb))
        return call

    def drain(self, exc: BaseException | None = None) -> int:
        """Reject every pending call, e.g. after the connection died.

        Returns:
            Number of calls rejected
        """
        if exc is None:
            exc = TransportLostError("Connection lost with commands in flight")

        count = 0
        while self._queue:
            call = self._queue.popleft()
            call.state = CallState.COMPLETED
            if not call.future.done():
                call.future.set_exception(exc)
                count += 1

        if count:
            self._logger.warning(f"Rejected {count} pending call(s): {exc}")
        return count
