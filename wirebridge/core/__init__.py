"""Public core API: errors, settings, contracts and process configuration."""

from .config import BridgeSettings, build_conninfo
from .contracts import ConnectionHandle, SqlPort, TransportPort
from .errors import (
    AcceptError,
    BindError,
    BridgeError,
    ConnectError,
    ExecError,
    ListenError,
    QueryError,
    ReceiveError,
    SendError,
    SocketError,
    SqlError,
    TransportError,
)
from .process import broken_pipe_ignored, ignore_broken_pipe

__all__ = [
    "AcceptError",
    "BindError",
    "BridgeError",
    "BridgeSettings",
    "ConnectError",
    "ConnectionHandle",
    "ExecError",
    "ListenError",
    "QueryError",
    "ReceiveError",
    "SendError",
    "SocketError",
    "SqlError",
    "SqlPort",
    "TransportError",
    "TransportPort",
    "broken_pipe_ignored",
    "build_conninfo",
    "ignore_broken_pipe",
]
