"""Environment-driven settings for the transport and SQL bridges."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_LISTEN_HOST = "0.0.0.0"
DEFAULT_BACKLOG = 128
DEFAULT_RECV_BUFFER_SIZE = 65536

_PG_KEYS = (
    ("host", "WIREBRIDGE_PG_HOST", "PGHOST"),
    ("port", "WIREBRIDGE_PG_PORT", "PGPORT"),
    ("user", "WIREBRIDGE_PG_USER", "PGUSER"),
    ("password", "WIREBRIDGE_PG_PASSWORD", "PGPASSWORD"),
    ("dbname", "WIREBRIDGE_PG_DATABASE", "PGDATABASE"),
)


def _quote_conninfo_value(value: str) -> str:
    """Quote one libpq key/value connection-string value."""

    if value and not any(ch in value for ch in " '\\"):
        return value
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _positive_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}.") from exc
    if value < 1:
        raise ValueError(f"{key} must be >= 1, got {value}.")
    return value


def build_conninfo(env: Mapping[str, str]) -> str:
    """Compose a libpq key/value connection string from environment values.

    `WIREBRIDGE_PG_*` variables win over the standard `PG*` ones. Keys with
    no value are left out so libpq applies its own defaults.
    """

    parts = []
    for key, own_var, pg_var in _PG_KEYS:
        value = env.get(own_var) or env.get(pg_var)
        if value:
            parts.append(f"{key}={_quote_conninfo_value(value)}")
    return " ".join(parts)


@dataclass(frozen=True)
class BridgeSettings:
    """Tunables shared by `SocketBridge` and `PgBridge`.

    Attributes:
        listen_host: Interface a listener binds to; all interfaces by default.
        backlog: Pending-connection queue length passed to `listen()`.
        recv_buffer_size: Upper bound of bytes returned by one `receive()`.
        pg_conninfo: Default connection string used by `PgBridge.connect()`.
    """

    listen_host: str = DEFAULT_LISTEN_HOST
    backlog: int = DEFAULT_BACKLOG
    recv_buffer_size: int = DEFAULT_RECV_BUFFER_SIZE
    pg_conninfo: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        if self.backlog < 1:
            raise ValueError("backlog must be >= 1.")
        if self.recv_buffer_size < 1:
            raise ValueError("recv_buffer_size must be >= 1.")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> BridgeSettings:
        """Build settings from `env` (defaults to `os.environ`)."""

        if env is None:
            env = os.environ
        dsn = env.get("WIREBRIDGE_PG_DSN")
        return cls(
            listen_host=env.get("WIREBRIDGE_LISTEN_HOST") or DEFAULT_LISTEN_HOST,
            backlog=_positive_int(env, "WIREBRIDGE_BACKLOG", DEFAULT_BACKLOG),
            recv_buffer_size=_positive_int(
                env, "WIREBRIDGE_RECV_BUFFER", DEFAULT_RECV_BUFFER_SIZE
            ),
            pg_conninfo=dsn if dsn else build_conninfo(env),
        )
