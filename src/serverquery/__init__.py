"""ServerQuery client - asyncio client for a voice server's query interface.

Main pieces:
- QueryClient: send commands, subscribe to notifications
- protocol: command serialization, escaping and line parsing
- enums: named integer constants used in protocol fields
- transport: TCP and in-memory line transports
"""

from .client import QueryClient, create_client, create_test_client
from .config import ClientConfig
from .correlator import CallState, PendingCall, ResponseCorrelator
from .demuxer import LineDemuxer
from .dispatcher import EventDispatcher
from .enums import (
    ENUMS,
    HostMessageMode,
    LogLevel,
    PermissionGroupDatabaseTypes,
    PermissionGroupTypes,
    QueryEnum,
    ReasonIdentifier,
    TextMessageTargetMode,
    TokenType,
)
from .errors import (
    CommandError,
    EnumLookupError,
    ProtocolFramingError,
    QueryError,
    TransportLostError,
)
from .protocol import Command, CommandType, NotifyEvent, StatusLine, escape, unescape
from .transport import (
    BaseClientTransport,
    ClientTransport,
    MockClientTransport,
    TcpClientTransport,
    TransportState,
    create_mock_transport,
    create_tcp_transport,
)

__all__ = [
    # Client
    "QueryClient",
    "ClientConfig",
    "create_client",
    "create_test_client",
    # Engine
    "LineDemuxer",
    "ResponseCorrelator",
    "PendingCall",
    "CallState",
    "EventDispatcher",
    # Protocol
    "Command",
    "CommandType",
    "NotifyEvent",
    "StatusLine",
    "escape",
    "unescape",
    # Errors
    "QueryError",
    "ProtocolFramingError",
    "CommandError",
    "TransportLostError",
    "EnumLookupError",
    # Constants
    "ENUMS",
    "QueryEnum",
    "HostMessageMode",
    "TextMessageTargetMode",
    "LogLevel",
    "ReasonIdentifier",
    "PermissionGroupDatabaseTypes",
    "PermissionGroupTypes",
    "TokenType",
    # Transports
    "ClientTransport",
    "BaseClientTransport",
    "TcpClientTransport",
    "MockClientTransport",
    "TransportState",
    "create_tcp_transport",
    "create_mock_transport",
]
