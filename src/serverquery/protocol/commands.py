"""Command definitions and wire serialization.

A command is a verb plus an optional argument structure:

- ``None``: no arguments (``version``)
- a scalar string: one positional value (``use 1``)
- a list of strings: flags (``serverlist -uid -short``)
- a mapping: key=value pairs (``use sid=1``)
- a list of mappings: the same operation applied to several targets,
  rendered as pipe-joined entities
  (``servergroupaddperm sgid=1 permid=a ...|sgid=1 permid=b ...``)

The wire protocol carries no command identifier; responses are matched
to commands purely by order (see ``serverquery.correlator``).
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum, IntEnum
from typing import Any, Union

from pydantic import BaseModel, field_validator

from .escaping import escape

# A single argument value. Lists render as the multi-value form key=a|key=b.
ArgumentValue = Union[str, int, bool, IntEnum, None, list[Union[str, int, IntEnum]]]

CommandData = Union[
    str,
    list[str],
    Mapping[str, ArgumentValue],
    list[Mapping[str, ArgumentValue]],
    None,
]

# Characters that may never appear in a verb, key or flag
_RESERVED = frozenset(" \t\r\n|=\\")


class CommandType(str, Enum):
    """Verbs the client itself issues."""

    LOGIN = "login"
    LOGOUT = "logout"
    USE = "use"
    QUIT = "quit"
    VERSION = "version"
    WHOAMI = "whoami"
    HELP = "help"
    SERVER_NOTIFY_REGISTER = "servernotifyregister"


def _check_token(token: str, kind: str) -> str:
    if not token or _RESERVED.intersection(token):
        raise ValueError(f"Invalid {kind}: {token!r}")
    return token


def format_value(value: Any) -> str:
    """Render a single argument value."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(int(value))
    return escape(str(value))


def _render_mapping(mapping: Mapping[str, Any]) -> str:
    parts: list[str] = []
    flags: list[str] = []
    for key, value in mapping.items():
        if key.startswith("-"):
            # {"-uid": True} mixes a flag into key=value arguments
            if value:
                flags.append(_render_flag(key))
            continue
        _check_token(key, "key")
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            if value:
                parts.append("|".join(f"{key}={format_value(item)}" for item in value))
            continue
        parts.append(f"{key}={format_value(value)}")
    return " ".join(parts + flags)


def _render_flag(flag: str) -> str:
    name = flag[1:] if flag.startswith("-") else flag
    return "-" + _check_token(name, "flag")


class Command(BaseModel):
    """A command from client to server.

    Example:
        >>> Command.create("clientkick", {"clid": ["1", "2"], "reasonid": 5}).to_line()
        'clientkick clid=1|clid=2 reasonid=5\\n'
    """

    verb: str
    data: Any = None

    @field_validator("verb")
    @classmethod
    def _validate_verb(cls, verb: str) -> str:
        return _check_token(verb, "verb")

    @field_validator("data")
    @classmethod
    def _validate_data(cls, data: Any) -> Any:
        if data is None or isinstance(data, str):
            return data
        if isinstance(data, Mapping):
            return dict(data)
        if isinstance(data, (list, tuple)):
            items = list(data)
            if all(isinstance(item, str) for item in items):
                return items
            if all(isinstance(item, Mapping) for item in items):
                return [dict(item) for item in items]
            raise ValueError("List arguments must be all flags or all mappings")
        raise ValueError(f"Unsupported command data type: {type(data).__name__}")

    def to_line(self) -> str:
        """Serialize to one newline-terminated wire line."""
        arguments = self.render_arguments()
        if arguments:
            return f"{self.verb} {arguments}\n"
        return f"{self.verb}\n"

    def render_arguments(self) -> str:
        data = self.data
        if data is None:
            return ""
        if isinstance(data, str):
            return escape(data)
        if isinstance(data, dict):
            return _render_mapping(data)
        if data and isinstance(data[0], dict):
            return "|".join(_render_mapping(entity) for entity in data)
        return " ".join(_render_flag(flag) for flag in data)

    @classmethod
    def create(cls, verb: str | CommandType, data: CommandData = None) -> Command:
        """Factory method for creating commands."""
        return cls(verb=verb.value if isinstance(verb, CommandType) else verb, data=data)

    # Convenience factories for commands the client issues itself
    @classmethod
    def login(cls, username: str, password: str) -> Command:
        """Create a login command."""
        return cls.create(
            CommandType.LOGIN,
            {"client_login_name": username, "client_login_password": password},
        )

    @classmethod
    def use(cls, sid: int | str | None = None, port: int | str | None = None) -> Command:
        """Create a use command selecting a virtual server by id or port."""
        if sid is None and port is None:
            raise ValueError("use requires sid or port")
        return cls.create(CommandType.USE, {"sid": sid, "port": port})
