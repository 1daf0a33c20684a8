"""Exception types raised by the ServerQuery client.

- ProtocolFramingError: the inbound line stream can no longer be trusted
- CommandError: the server rejected one command (non-zero status)
- TransportLostError: the connection died with commands still in flight
- EnumLookupError: unknown constant name or value
"""

from __future__ import annotations


class QueryError(Exception):
    """Base class for all ServerQuery errors."""

    pass


class ProtocolFramingError(QueryError):
    """The line stream is out of sync with the pending command queue.

    Raised for data or status lines that arrive with nothing in flight,
    malformed key=value tokens and broken escape sequences. The parser
    state is unusable afterwards; reconnecting is up to the caller.
    """

    def __init__(self, message: str, line: str | None = None) -> None:
        super().__init__(message)
        self.line = line


class CommandError(QueryError):
    """A command finished with a non-zero status line."""

    def __init__(
        self,
        code: int,
        message: str,
        extra_message: str | None = None,
        failed_permid: int | None = None,
        verb: str | None = None,
    ) -> None:
        super().__init__(f"{message} (id={code})")
        self.code = code
        self.message = message
        self.extra_message = extra_message
        self.failed_permid = failed_permid
        self.verb = verb


class TransportLostError(QueryError, ConnectionError):
    """The connection closed while commands were still pending."""

    pass


class EnumLookupError(QueryError, LookupError):
    """Unknown name or value requested from a constant table."""

    def __init__(self, enum_name: str, key: object) -> None:
        super().__init__(f"{enum_name} has no member {key!r}")
        self.enum_name = enum_name
        self.key = key
