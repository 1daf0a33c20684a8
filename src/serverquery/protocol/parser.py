"""Line classification and parsing.

Pure functions only: nothing here touches the pending command queue.
Routing happens in ``serverquery.demuxer``.
"""

from __future__ import annotations

from enum import Enum

from ..errors import ProtocolFramingError
from .escaping import unescape
from .events import NotifyEvent, Row, StatusLine

NOTIFY_PREFIX = "notify"
STATUS_PREFIX = "error id="


class LineKind(str, Enum):
    """What a decoded line is."""

    EMPTY = "empty"
    NOTIFY = "notify"
    STATUS = "status"
    DATA = "data"


def classify(line: str) -> LineKind:
    """Classify a decoded line (line terminators already removed)."""
    if not line:
        return LineKind.EMPTY
    if line.startswith(NOTIFY_PREFIX):
        return LineKind.NOTIFY
    if line.startswith(STATUS_PREFIX):
        return LineKind.STATUS
    return LineKind.DATA


def parse_row(segment: str, line: str | None = None) -> Row:
    """Parse one entity row of space separated key=value tokens.

    A token without ``=`` is a flag and maps to an empty string.
    """
    row: Row = {}
    for token in segment.split(" "):
        if not token:
            continue
        key, sep, raw = token.partition("=")
        if not key:
            raise ProtocolFramingError(f"Malformed token {token!r}", line)
        try:
            row[key] = unescape(raw) if sep else ""
        except ProtocolFramingError as e:
            raise ProtocolFramingError(str(e), line) from e
    return row


def parse_rows(text: str, line: str | None = None) -> list[Row]:
    """Split a data line on ``|`` into entity rows.

    Escaped pipes are ``\\p`` on the wire, so every raw ``|`` is a
    separator.
    """
    rows = []
    for segment in text.split("|"):
        row = parse_row(segment, line if line is not None else text)
        if row:
            rows.append(row)
    return rows


def parse_notify(line: str) -> NotifyEvent:
    """Parse a ``notify<name> ...`` line."""
    head, _, rest = line.partition(" ")
    name = head[len(NOTIFY_PREFIX) :]
    if not name:
        raise ProtocolFramingError("Notification without event name", line)
    rows = parse_rows(rest, line)
    return NotifyEvent(name=name, fields=rows[0] if rows else {}, rows=rows)


def parse_status(line: str) -> StatusLine:
    """Parse an ``error id=<code> msg=<text>`` line."""
    fields = parse_row(line[len("error ") :], line)

    code = fields.get("id", "")
    if not (code.isascii() and code.isdigit()):
        raise ProtocolFramingError(f"Status id is not an unsigned integer: {code!r}", line)

    failed_permid = fields.get("failed_permid")
    if failed_permid is not None and not (failed_permid.isascii() and failed_permid.isdigit()):
        failed_permid = None

    return StatusLine(
        code=int(code),
        message=fields.get("msg", ""),
        extra_message=fields.get("extra_msg"),
        failed_permid=int(failed_permid) if failed_permid is not None else None,
    )
