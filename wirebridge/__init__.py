"""Blocking TCP sockets and parameterized PostgreSQL behind a narrow boundary.

The module-level functions are bound to default bridge instances built from
`BridgeSettings()`; construct `SocketBridge` / `PgBridge` directly for other
settings.
"""

import logging

from .core import (
    AcceptError,
    BindError,
    BridgeError,
    BridgeSettings,
    ConnectError,
    ConnectionHandle,
    ExecError,
    ListenError,
    QueryError,
    ReceiveError,
    SendError,
    SocketError,
    SqlError,
    SqlPort,
    TransportError,
    TransportPort,
    broken_pipe_ignored,
    build_conninfo,
    ignore_broken_pipe,
)
from .ports import PgBridge, PgConnection, SocketBridge

logging.getLogger(__name__).addHandler(logging.NullHandler())

_transport = SocketBridge()
_sql = PgBridge()

listen = _transport.listen
accept = _transport.accept
receive = _transport.receive
send = _transport.send
close = _transport.close
local_address = _transport.local_address

connect = _sql.connect
execute = _sql.execute
query = _sql.query

__all__ = [
    "AcceptError",
    "BindError",
    "BridgeError",
    "BridgeSettings",
    "ConnectError",
    "ConnectionHandle",
    "ExecError",
    "ListenError",
    "PgBridge",
    "PgConnection",
    "QueryError",
    "ReceiveError",
    "SendError",
    "SocketBridge",
    "SocketError",
    "SqlError",
    "SqlPort",
    "TransportError",
    "TransportPort",
    "accept",
    "broken_pipe_ignored",
    "build_conninfo",
    "close",
    "connect",
    "execute",
    "ignore_broken_pipe",
    "listen",
    "local_address",
    "query",
    "receive",
    "send",
]
