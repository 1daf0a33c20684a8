"""Unit tests for ResponseCorrelator."""

import pytest

from serverquery.correlator import CallState, ResponseCorrelator
from serverquery.errors import CommandError, ProtocolFramingError, TransportLostError
from serverquery.protocol.events import StatusLine

OK = StatusLine(code=0, message="ok")


class TestFifoOrder:
    """Status lines complete calls oldest first."""

    @pytest.mark.asyncio
    async def test_resolve_oldest_first(self):
        correlator = ResponseCorrelator()
        first = correlator.enqueue("version")
        second = correlator.enqueue("whoami")

        correlator.add_rows([{"version": "3.13.7"}])
        resolved = correlator.resolve(OK)

        assert resolved is first
        assert first.future.result() == [{"version": "3.13.7"}]
        assert not second.future.done()
        assert correlator.head is second

    @pytest.mark.asyncio
    async def test_positions_increase(self):
        correlator = ResponseCorrelator()
        calls = [correlator.enqueue("version") for _ in range(3)]

        assert [c.position for c in calls] == [0, 1, 2]
        assert [c.position for c in correlator.pending()] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_rows_accumulate_across_lines(self):
        correlator = ResponseCorrelator()
        call = correlator.enqueue("clientlist")

        correlator.add_rows([{"clid": "1"}])
        correlator.add_rows([{"clid": "2"}, {"clid": "3"}])
        assert call.state is CallState.ACCUMULATING

        correlator.resolve(OK)
        assert call.state is CallState.COMPLETED
        assert [r["clid"] for r in call.future.result()] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_empty_response(self):
        """A status line without data completes with no rows."""
        correlator = ResponseCorrelator()
        call = correlator.enqueue("use")

        correlator.resolve(OK)

        assert call.future.result() == []
        assert correlator.is_idle


class TestErrors:
    """Non-zero status lines and desync."""

    @pytest.mark.asyncio
    async def test_error_status_rejects_head(self):
        correlator = ResponseCorrelator()
        call = correlator.enqueue("frobnicate")

        correlator.resolve(StatusLine(code=1, message="unknown command"))

        with pytest.raises(CommandError) as exc_info:
            call.future.result()
        assert exc_info.value.code == 1
        assert exc_info.value.message == "unknown command"
        assert exc_info.value.verb == "frobnicate"

    @pytest.mark.asyncio
    async def test_data_with_nothing_in_flight(self):
        with pytest.raises(ProtocolFramingError):
            ResponseCorrelator().add_rows([{"a": "1"}], "a=1")

    @pytest.mark.asyncio
    async def test_status_with_nothing_in_flight(self):
        with pytest.raises(ProtocolFramingError) as exc_info:
            ResponseCorrelator().resolve(OK, "error id=0 msg=ok")

        assert exc_info.value.line == "error id=0 msg=ok"

    @pytest.mark.asyncio
    async def test_abandoned_call_keeps_its_slot(self):
        """A cancelled waiter still consumes its status line."""
        correlator = ResponseCorrelator()
        abandoned = correlator.enqueue("serverlist")
        waiting = correlator.enqueue("version")

        abandoned.future.cancel()
        assert len(correlator) == 2

        assert correlator.resolve(OK) is abandoned
        correlator.resolve(OK)
        assert waiting.future.result() == []


class TestDrain:
    """Rejecting every pending call."""

    @pytest.mark.asyncio
    async def test_drain_rejects_all(self):
        correlator = ResponseCorrelator()
        calls = [correlator.enqueue(verb) for verb in ("version", "whoami", "serverlist")]

        assert correlator.drain() == 3

        assert correlator.is_idle
        for call in calls:
            with pytest.raises(TransportLostError):
                call.future.result()

    @pytest.mark.asyncio
    async def test_drain_with_custom_error(self):
        correlator = ResponseCorrelator()
        call = correlator.enqueue("version")
        error = ProtocolFramingError("desync")

        correlator.drain(error)

        assert call.future.exception() is error

    @pytest.mark.asyncio
    async def test_drain_empty(self):
        assert ResponseCorrelator().drain() == 0

