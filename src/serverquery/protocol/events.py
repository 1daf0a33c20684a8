"""Inbound message types.

The server sends three kinds of lines:
- Notifications: ``notify<name> key=value ...``, unsolicited, never
  part of a command response
- Data lines: ``key=value key=value|key=value ...``, entity rows that
  belong to the command currently being answered
- Status lines: ``error id=<code> msg=<text>``, terminating a response
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..errors import CommandError

Row = dict[str, str]


class NotifyEvent(BaseModel):
    """An unsolicited server notification.

    Example:
        ``notifytextmessage targetmode=2 msg=hi`` becomes
        ``NotifyEvent(name="textmessage", fields={"targetmode": "2", "msg": "hi"})``
    """

    name: str
    fields: Row = Field(default_factory=dict)
    # All entity rows; ``fields`` is the first one
    rows: list[Row] = Field(default_factory=list)

    def get(self, key: str, default: str | None = None) -> str | None:
        """Get a field with optional default."""
        return self.fields.get(key, default)


class StatusLine(BaseModel):
    """The terminal line of a command response."""

    code: int
    message: str = ""
    extra_message: str | None = None
    failed_permid: int | None = None

    @property
    def ok(self) -> bool:
        return self.code == 0

    def to_error(self, verb: str | None = None) -> CommandError:
        """Build the error for a rejected command, keeping the server text verbatim."""
        return CommandError(
            code=self.code,
            message=self.message,
            extra_message=self.extra_message,
            failed_permid=self.failed_permid,
            verb=verb,
        )
