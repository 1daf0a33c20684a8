"""Line Demuxer - splits the inbound line stream by kind.

Notifications go to the event dispatcher and never touch the pending
queue. Data lines are appended to the response being accumulated, and a
status line completes it. Everything here is plain computation so the
reader loop never blocks on it.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable

from .correlator import ResponseCorrelator
from .dispatcher import EventDispatcher
from .errors import ProtocolFramingError
from .protocol.parser import LineKind, classify, parse_notify, parse_rows, parse_status


class LineDemuxer:
    """Routes decoded lines to the dispatcher or the correlator."""

    def __init__(
        self,
        correlator: ResponseCorrelator,
        dispatcher: EventDispatcher,
        logger: logging.Logger | None = None,
    ) -> None:
        self.correlator = correlator
        self.dispatcher = dispatcher
        self._logger = logger or logging.getLogger(__name__)

    def feed(self, line: str) -> LineKind:
        """Process one decoded line.

        Returns:
            The kind of line that was processed

        Raises:
            ProtocolFramingError: On a data or status line with nothing in
                flight, or on a malformed line.
        """
        line = line.strip("\r\n")
        kind = classify(line)

        if kind is LineKind.EMPTY:
            return kind

        if kind is LineKind.NOTIFY:
            event = parse_notify(line)
            self.dispatcher.dispatch(event.name, event)
            return kind

        # Check before parsing so a desync is reported as such
        if self.correlator.is_idle:
            raise ProtocolFramingError(
                f"Unexpected {kind.value} line with no command in flight", line
            )

        if kind is LineKind.STATUS:
            call = self.correlator.resolve(parse_status(line), line)
            self._logger.debug(f"Completed #{call.position} {call.verb} ({len(call.rows)} rows)")
        else:
            self.correlator.add_rows(parse_rows(line), line)
        return kind

    async def consume(self, lines: AsyncIterable[str]) -> None:
        """Feed every line of a stream until it ends.

        Framing errors propagate and stop consumption.
        """
        async for line in lines:
            self.feed(line)
