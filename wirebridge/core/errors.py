"""Error taxonomy raised at the bridge boundary."""

from __future__ import annotations

from typing import Optional


class BridgeError(RuntimeError):
    """Base class for every failure converted at the boundary."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(BridgeError):
    """Socket-level failure; `errno` is kept when the OS reported one."""

    def __init__(self, message: str, *, errno: Optional[int] = None):
        super().__init__(message)
        self.errno = errno

    @classmethod
    def from_os_error(cls, call: str, exc: OSError) -> TransportError:
        reason = exc.strerror or str(exc)
        return cls(f"{call}() failed: {reason}", errno=exc.errno)


class SocketError(TransportError):
    """Raised when a socket descriptor cannot be created."""


class BindError(TransportError):
    """Raised when the listening address cannot be bound."""


class ListenError(TransportError):
    """Raised when the listen queue cannot be established."""


class AcceptError(TransportError):
    """Raised when accepting a peer connection fails."""


class ReceiveError(TransportError):
    """Raised when a blocking read fails."""


class SendError(TransportError):
    """Raised when a write fails; bytes already written are not reported."""


class SqlError(BridgeError):
    """Database failure; `sqlstate` is kept when the server reported one."""

    def __init__(self, message: str, *, sqlstate: Optional[str] = None):
        super().__init__(message)
        self.sqlstate = sqlstate


class ConnectError(SqlError):
    """Raised when a database connection cannot be opened."""


class ExecError(SqlError):
    """Raised when a mutating statement does not complete."""


class QueryError(SqlError):
    """Raised when a reading statement does not return rows."""
