"""ServerQuery wire protocol.

Line-oriented text protocol:
- Commands: ``<verb>[ key=value]*[ -flag]*[|key=value...]*``
- Status lines: ``error id=<code> msg=<text>`` terminate every response
- Data lines: ``key=value ...|key=value ...`` entity rows
- Notifications: ``notify<name> key=value ...``

There is no correlation id on the wire: responses arrive in the order
the commands were sent.
"""

from .commands import Command, CommandData, CommandType
from .escaping import escape, unescape
from .events import NotifyEvent, Row, StatusLine
from .parser import LineKind, classify, parse_notify, parse_rows, parse_status

__all__ = [
    "Command",
    "CommandData",
    "CommandType",
    "escape",
    "unescape",
    "NotifyEvent",
    "Row",
    "StatusLine",
    "LineKind",
    "classify",
    "parse_notify",
    "parse_rows",
    "parse_status",
]
