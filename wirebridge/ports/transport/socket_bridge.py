"""Blocking TCP primitives over raw integer descriptors."""

from __future__ import annotations

import contextlib
import logging
import os
import socket
from typing import Iterator, Optional

from ...core.config import BridgeSettings
from ...core.errors import (
    AcceptError,
    BindError,
    ListenError,
    ReceiveError,
    SendError,
    SocketError,
    TransportError,
)
from ...core.process import ignore_broken_pipe
from ...core.types import Address, Payload, SocketHandle

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _borrowed(handle: SocketHandle, error: type[TransportError]) -> Iterator[socket.socket]:
    """Wrap `handle` in a socket object without taking ownership of it.

    The descriptor is detached again on exit, so the wrapper never closes it.
    """

    try:
        sock = socket.socket(fileno=handle)
    except OSError as exc:
        raise error.from_os_error("fileno", exc) from exc
    try:
        yield sock
    finally:
        sock.detach()


def _encode(data: Payload) -> memoryview:
    if isinstance(data, str):
        return memoryview(data.encode("utf-8"))
    return memoryview(data).cast("B")


class SocketBridge:
    """Socket handles are plain descriptors: nothing here owns or finalizes them.

    Every method blocks the calling thread until the underlying syscall
    returns. A handle must not be driven by two threads at once; distinct
    handles are independent.
    """

    def __init__(self, settings: Optional[BridgeSettings] = None):
        self.settings = settings if settings is not None else BridgeSettings()

    def listen(self, port: int) -> SocketHandle:
        """Open an IPv4 listener on `port` and return its descriptor.

        The first call also ignores `SIGPIPE` process-wide so writes to a
        closed peer fail with `SendError` instead of killing the process.
        """

        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port must be in 0..65535, got {port}.")
        try:
            ignore_broken_pipe()
        except ValueError:
            logger.warning(
                "SIGPIPE disposition left unchanged; call ignore_broken_pipe() "
                "from the main thread at startup"
            )

        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as exc:
            raise SocketError.from_os_error("socket", exc) from exc

        try:
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            except OSError as exc:
                raise SocketError.from_os_error("setsockopt", exc) from exc
            try:
                sock.bind((self.settings.listen_host, port))
            except OSError as exc:
                raise BindError.from_os_error("bind", exc) from exc
            try:
                sock.listen(self.settings.backlog)
            except OSError as exc:
                raise ListenError.from_os_error("listen", exc) from exc
        except BaseException:
            sock.close()
            raise

        handle = sock.detach()
        logger.debug("listening on %s:%d (fd=%d)", self.settings.listen_host, port, handle)
        return handle

    def accept(self, handle: SocketHandle) -> SocketHandle:
        """Block until a peer connects to listener `handle`; return its descriptor."""

        with _borrowed(handle, AcceptError) as listener:
            try:
                conn, peer = listener.accept()
            except OSError as exc:
                raise AcceptError.from_os_error("accept", exc) from exc
        client = conn.detach()
        logger.debug("accepted %s on fd=%d (fd=%d)", peer, handle, client)
        return client

    def receive(self, handle: SocketHandle) -> bytes:
        """Perform one blocking read of at most `recv_buffer_size` bytes.

        Returns whatever arrived, possibly a partial message. Empty bytes
        mean the peer shut down its side.
        """

        try:
            return os.read(handle, self.settings.recv_buffer_size)
        except OSError as exc:
            raise ReceiveError.from_os_error("read", exc) from exc

    def send(self, handle: SocketHandle, data: Payload) -> None:
        """Write all of `data`, retrying partial writes.

        `str` is sent as UTF-8. On failure the loop stops at once and the
        number of bytes already written is lost.
        """

        view = _encode(data)
        while view:
            try:
                written = os.write(handle, view)
            except OSError as exc:
                raise SendError.from_os_error("write", exc) from exc
            view = view[written:]

    def close(self, handle: SocketHandle) -> None:
        """Release `handle`. Never raises."""

        try:
            os.close(handle)
        except OSError as exc:
            logger.debug("close(fd=%d) ignored: %s", handle, exc)
            return
        logger.debug("closed fd=%d", handle)

    def local_address(self, handle: SocketHandle) -> Address:
        """Return the `(host, port)` the descriptor is bound to."""

        with _borrowed(handle, SocketError) as sock:
            try:
                host, port = sock.getsockname()[:2]
            except OSError as exc:
                raise SocketError.from_os_error("getsockname", exc) from exc
        return host, port
