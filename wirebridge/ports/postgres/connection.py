"""Single-owner handle around a live psycopg connection."""

from __future__ import annotations

import logging
import weakref
from typing import Any

logger = logging.getLogger(__name__)


def _release(raw: Any) -> None:
    """Close one native connection.

    May run on whatever thread the garbage collector happens to use, so it
    touches nothing but the connection itself.
    """

    close = getattr(raw, "close", None)
    if callable(close):
        close()
    logger.debug("released database connection %#x", id(raw))


class PgConnection:
    """Opaque handle returned by `PgBridge.connect()`.

    The native connection is released exactly once: by `close()`, by leaving
    a `with` block, or by the collector once the handle becomes unreachable.
    Prefer the explicit forms; collector timing is unpredictable.
    """

    def __init__(self, raw: Any):
        self._raw = raw
        self._finalizer = weakref.finalize(self, _release, raw)

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def _require_open_connection(self) -> Any:
        if self.closed:
            raise RuntimeError("connection is closed")
        return self._raw

    def close(self) -> None:
        """Release the native connection; later calls do nothing."""

        self._finalizer()

    def __enter__(self) -> PgConnection:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<PgConnection {state} at {id(self):#x}>"
