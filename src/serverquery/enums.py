"""Named integer constants used to interpret ServerQuery fields.

Every table is an ``IntEnum`` whose members also carry a description,
so a member can be sent as an argument (it renders as its integer) and
printed for humans (``str()`` gives name and description).
"""

from __future__ import annotations

from enum import IntEnum, unique

from .errors import EnumLookupError


class QueryEnum(IntEnum):
    """Base class for the constant tables."""

    def __new__(cls, value: int, description: str = ""):
        obj = int.__new__(cls, value)
        obj._value_ = value
        obj._description = description
        return obj

    @property
    def description(self) -> str:
        return self._description

    @property
    def display(self) -> str:
        return f"{self.name} ({self.description})"

    def __str__(self) -> str:
        return self.display

    @classmethod
    def symbols(cls) -> list[QueryEnum]:
        """All members in definition order."""
        return list(cls)

    @classmethod
    def keys(cls) -> list[str]:
        """All member names in definition order."""
        return [member.name for member in cls]

    @classmethod
    def contains(cls, item: object) -> bool:
        """Check membership by member identity or numeric value.

        Members of a different table never match, even when their
        numeric value does.
        """
        if isinstance(item, cls):
            return True
        if isinstance(item, (IntEnum, bool)) or not isinstance(item, int):
            return False
        return item in cls._value2member_map_

    @classmethod
    def lookup(cls, key: str | int) -> QueryEnum:
        """Resolve a member by name or numeric value.

        Raises:
            EnumLookupError: If no member matches.
        """
        if isinstance(key, cls):
            return key
        if isinstance(key, str):
            member = cls.__members__.get(key)
        elif isinstance(key, int) and not isinstance(key, (IntEnum, bool)):
            member = cls._value2member_map_.get(key)
        else:
            member = None
        if member is None:
            raise EnumLookupError(cls.__name__, key)
        return member


@unique
class HostMessageMode(QueryEnum):
    """How the virtual server host message is shown to connecting clients."""

    LOG = 1, "display message in chatlog"
    MODAL = 2, "display message in modal dialog"
    MODALQUIT = 3, "display message in modal dialog and close connection"


@unique
class TextMessageTargetMode(QueryEnum):
    """Target of a text message (``targetmode`` field)."""

    CLIENT = 1, "target is a client"
    CHANNEL = 2, "target is a channel"
    SERVER = 3, "target is a virtual server"


@unique
class LogLevel(QueryEnum):
    """Severity of a server log entry (``loglevel`` field)."""

    ERROR = 1, "everything that is really bad"
    WARNING = 2, "everything that might be bad"
    DEBUG = 3, "output that might help find a problem"
    INFO = 4, "informational output"


@unique
class ReasonIdentifier(QueryEnum):
    """Why a client was removed (``reasonid`` field)."""

    KICK_CHANNEL = 4, "kick client from channel"
    KICK_SERVER = 5, "kick client from server"


@unique
class PermissionGroupDatabaseTypes(QueryEnum):
    """Storage type of a permission group (``type`` field of groups)."""

    TEMPLATE = 0, "template group (used for new virtual servers)"
    REGULAR = 1, "regular group (used for regular clients)"
    QUERY = 2, "global query group (used for ServerQuery clients)"


@unique
class PermissionGroupTypes(QueryEnum):
    """Kind of permission assignment."""

    SERVER_GROUP = 0, "server group permission"
    GLOBAL_CLIENT = 1, "client specific permission"
    CHANNEL = 2, "channel specific permission"
    CHANNEL_GROUP = 3, "channel group permission"
    CHANNEL_CLIENT = 4, "channel-client specific permission"


@unique
class TokenType(QueryEnum):
    """Kind of privilege key (``tokentype`` field)."""

    SERVER_GROUP = 0, "server group token (id1={groupID} id2=0)"
    CHANNEL_GROUP = 1, "channel group token (id1={groupID} id2={channelID})"


# Registry of all tables by name (used by the CLI)
ENUMS: dict[str, type[QueryEnum]] = {
    table.__name__: table
    for table in (
        HostMessageMode,
        TextMessageTargetMode,
        LogLevel,
        ReasonIdentifier,
        PermissionGroupDatabaseTypes,
        PermissionGroupTypes,
        TokenType,
    )
}


def get_enum(name: str) -> type[QueryEnum]:
    """Look up a constant table by its class name.

    Raises:
        EnumLookupError: If no table has that name.
    """
    try:
        return ENUMS[name]
    except KeyError:
        raise EnumLookupError("ENUMS", name) from None
