"""Port contracts implemented by the concrete bridges."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .types import Address, NullableTable, Params, Payload, SocketHandle, Table


@runtime_checkable
class TransportPort(Protocol):
    """Blocking socket primitives addressed by integer descriptors."""

    def listen(self, port: int) -> SocketHandle: ...

    def accept(self, handle: SocketHandle) -> SocketHandle: ...

    def receive(self, handle: SocketHandle) -> bytes: ...

    def send(self, handle: SocketHandle, data: Payload) -> None: ...

    def close(self, handle: SocketHandle) -> None: ...

    def local_address(self, handle: SocketHandle) -> Address: ...


@runtime_checkable
class ConnectionHandle(Protocol):
    """Single-owner handle around one live database connection."""

    @property
    def closed(self) -> bool: ...

    def close(self) -> None: ...


@runtime_checkable
class SqlPort(Protocol):
    """Parameterized statement execution with text-only results."""

    def connect(self, conninfo: Optional[str] = None) -> ConnectionHandle: ...

    def execute(self, conn: ConnectionHandle, statement: str, params: Params = ()) -> int: ...

    def query(
        self,
        conn: ConnectionHandle,
        statement: str,
        params: Params = (),
        *,
        null: Optional[str] = "",
    ) -> Table | NullableTable: ...
