"""Unit tests for ServerQuery value escaping."""

import pytest

from serverquery.errors import ProtocolFramingError
from serverquery.protocol.escaping import ESCAPE_TABLE, escape, unescape


class TestEscape:
    """Test escaping values for the wire."""

    def test_plain_text_unchanged(self):
        """Text without special characters passes through."""
        assert escape("serveradmin") == "serveradmin"

    def test_each_special_character(self):
        """Every special character maps to its two-character sequence."""
        assert escape("\\") == "\\\\"
        assert escape("/") == "\\/"
        assert escape(" ") == "\\s"
        assert escape("|") == "\\p"
        assert escape("\t") == "\\t"
        assert escape("\r") == "\\r"
        assert escape("\n") == "\\n"

    def test_mixed_sentence(self):
        """Special characters inside text are all replaced."""
        assert escape("a b|c/d\\e") == "a\\sb\\pc\\/d\\\\e"

    def test_no_delimiters_survive(self):
        """Escaped output never contains a raw delimiter."""
        encoded = escape("multi word | piped\nline\r\n\tend")
        for delimiter in (" ", "|", "\n", "\r", "\t"):
            assert delimiter not in encoded

    def test_unicode_untouched(self):
        """Non-ASCII characters are not escaped."""
        assert escape("Grüße 世界") == "Grüße\\s世界"


class TestUnescape:
    """Test decoding server values."""

    def test_unknown_command_message(self):
        """The classic server message decodes to plain words."""
        assert unescape("unknown\\scommand") == "unknown command"

    def test_double_backslash(self):
        """An escaped backslash followed by s is not a space."""
        assert unescape("a\\\\sb") == "a\\sb"

    def test_dangling_backslash_rejected(self):
        """A backslash at the end of a value is a framing error."""
        with pytest.raises(ProtocolFramingError):
            unescape("broken\\")

    def test_unknown_sequence_rejected(self):
        """Sequences outside the escape table are rejected."""
        with pytest.raises(ProtocolFramingError):
            unescape("bell\\x")


class TestRoundTrip:
    """unescape(escape(s)) == s."""

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "plain",
            "\\s is not a space",
            "path/to\\file",
            "one | two | three",
            "tabs\tand\r\nnewlines",
            "\\\\\\",
            "".join(ESCAPE_TABLE),
            "".join(reversed(ESCAPE_TABLE)) * 3,
        ],
    )
    def test_round_trip(self, value):
        """Decoding an escaped value gives back the original."""
        assert unescape(escape(value)) == value
