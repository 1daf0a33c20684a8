"""Unit tests for line classification and parsing."""

import pytest

from serverquery.errors import ProtocolFramingError
from serverquery.protocol.parser import (
    LineKind,
    classify,
    parse_notify,
    parse_row,
    parse_rows,
    parse_status,
)


class TestClassify:
    """Test line kind detection."""

    def test_empty(self):
        assert classify("") is LineKind.EMPTY

    def test_notify(self):
        assert classify("notifytextmessage targetmode=2 msg=hi") is LineKind.NOTIFY

    def test_status(self):
        assert classify("error id=0 msg=ok") is LineKind.STATUS

    def test_data(self):
        assert classify("virtualserver_id=1 virtualserver_port=9987") is LineKind.DATA

    def test_error_without_id_is_data(self):
        """Only "error id=" marks a status line."""
        assert classify("error_count=3") is LineKind.DATA


class TestParseRows:
    """Test data line parsing."""

    def test_single_row(self):
        """Space separated pairs form one row."""
        assert parse_rows("version=3.13.7 build=1 platform=Linux") == [
            {"version": "3.13.7", "build": "1", "platform": "Linux"}
        ]

    def test_multiple_rows(self):
        """Pipes separate entity rows."""
        rows = parse_rows("clid=1 client_nickname=Alice|clid=2 client_nickname=Bob\\sSmith")

        assert rows == [
            {"clid": "1", "client_nickname": "Alice"},
            {"clid": "2", "client_nickname": "Bob Smith"},
        ]

    def test_escaped_pipe_is_not_a_separator(self):
        """An escaped pipe stays inside the value."""
        assert parse_rows("channel_name=a\\pb") == [{"channel_name": "a|b"}]

    def test_bare_token_is_flag(self):
        """A token without = maps to an empty string."""
        assert parse_row("virtualserver_password client_flag_avatar=") == {
            "virtualserver_password": "",
            "client_flag_avatar": "",
        }

    def test_value_containing_equals(self):
        """Only the first = separates key from value."""
        assert parse_row("token=abc=def") == {"token": "abc=def"}

    def test_empty_key_rejected(self):
        """A token starting with = is malformed."""
        with pytest.raises(ProtocolFramingError):
            parse_rows("=oops")

    def test_dangling_escape_rejected(self):
        """A value ending in a lone backslash is malformed."""
        with pytest.raises(ProtocolFramingError) as exc_info:
            parse_rows("msg=broken\\")

        assert exc_info.value.line == "msg=broken\\"


class TestParseStatus:
    """Test status line parsing."""

    def test_ok(self):
        status = parse_status("error id=0 msg=ok")

        assert status.ok
        assert status.code == 0
        assert status.message == "ok"
        assert status.extra_message is None

    def test_error_message_is_decoded(self):
        status = parse_status("error id=256 msg=command\\snot\\sfound")

        assert not status.ok
        assert status.code == 256
        assert status.message == "command not found"

    def test_extra_fields(self):
        status = parse_status(
            "error id=2568 msg=insufficient\\sclient\\spermissions failed_permid=4 "
            "extra_msg=see\\slog"
        )

        assert status.failed_permid == 4
        assert status.extra_message == "see log"

    def test_to_error_keeps_server_text(self):
        """The command error carries the verbatim server message."""
        error = parse_status("error id=1 msg=unknown\\scommand").to_error("frobnicate")

        assert error.code == 1
        assert error.message == "unknown command"
        assert error.verb == "frobnicate"

    @pytest.mark.parametrize("line", ["error id=abc msg=x", "error id=-1 msg=x", "error id= msg=x"])
    def test_non_numeric_id_rejected(self, line):
        """The id must be an unsigned integer."""
        with pytest.raises(ProtocolFramingError):
            parse_status(line)


class TestParseNotify:
    """Test notification parsing."""

    def test_name_and_fields(self):
        event = parse_notify("notifytextmessage targetmode=2 msg=hi invokerid=7")

        assert event.name == "textmessage"
        assert event.fields == {"targetmode": "2", "msg": "hi", "invokerid": "7"}
        assert event.get("msg") == "hi"

    def test_without_fields(self):
        event = parse_notify("notifyserveredited")

        assert event.name == "serveredited"
        assert event.fields == {}
        assert event.rows == []

    def test_multiple_rows(self):
        event = parse_notify("notifyclientleftview cfid=1 ctid=0 clid=5|clid=6")

        assert event.fields["clid"] == "5"
        assert [row["clid"] for row in event.rows] == ["5", "6"]

    def test_missing_name_rejected(self):
        with pytest.raises(ProtocolFramingError):
            parse_notify("notify msg=hi")
