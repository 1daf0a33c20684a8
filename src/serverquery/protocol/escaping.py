"""ServerQuery value escaping.

Values on the wire never contain raw spaces, pipes or line breaks; those
are the protocol's delimiters. Each special character is replaced by a
two-character backslash sequence:

    \\   ->  \\\\
    /    ->  \\/
    " "  ->  \\s
    |    ->  \\p
    TAB  ->  \\t
    CR   ->  \\r
    LF   ->  \\n
"""

from __future__ import annotations

from ..errors import ProtocolFramingError

ESCAPE_TABLE: dict[str, str] = {
    "\\": "\\\\",
    "/": "\\/",
    " ": "\\s",
    "|": "\\p",
    "\t": "\\t",
    "\r": "\\r",
    "\n": "\\n",
}

# Second character of an escape sequence -> decoded character
UNESCAPE_TABLE: dict[str, str] = {seq[1]: char for char, seq in ESCAPE_TABLE.items()}

_TRANSLATION = str.maketrans(ESCAPE_TABLE)


def escape(value: str) -> str:
    """Escape a value for transmission."""
    return value.translate(_TRANSLATION)


def unescape(value: str) -> str:
    """Decode an escaped value received from the server.

    Raises:
        ProtocolFramingError: On a dangling backslash or an escape
            sequence that is not part of the table.
    """
    if "\\" not in value:
        return value

    out: list[str] = []
    i = 0
    length = len(value)
    while i < length:
        char = value[i]
        if char != "\\":
            out.append(char)
            i += 1
            continue

        if i + 1 >= length:
            raise ProtocolFramingError("Unterminated escape sequence", value)

        decoded = UNESCAPE_TABLE.get(value[i + 1])
        if decoded is None:
            raise ProtocolFramingError(f"Unknown escape sequence \\{value[i + 1]}", value)
        out.append(decoded)
        i += 2

    return "".join(out)
