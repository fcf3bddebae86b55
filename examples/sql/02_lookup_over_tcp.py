"""Line-oriented key lookup server composing both bridges.

Each client line is a key; the server answers with its value from Postgres.
Framing (splitting on newlines) happens here, above the raw receive primitive.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "wirebridge").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from wirebridge import (
    BridgeError,
    BridgeSettings,
    ConnectError,
    PgBridge,
    PgConnection,
    SocketBridge,
    SqlPort,
    TransportPort,
    ignore_broken_pipe,
)


def answer(sql: SqlPort, conn: PgConnection, key: str) -> str:
    rows = sql.query(conn, "SELECT value FROM kv WHERE name = $1", [key], null=None)
    if not rows:
        return "NOT FOUND"
    value = rows[0][0]
    return "NULL" if value is None else value


def serve(transport: TransportPort, sql: SqlPort, conn: PgConnection, handle: int) -> None:
    pending = b""
    try:
        while True:
            chunk = transport.receive(handle)
            if not chunk:
                return
            pending += chunk
            *lines, pending = pending.split(b"\n")
            for line in lines:
                key = line.decode("utf-8", "replace").strip()
                transport.send(handle, answer(sql, conn, key) + "\n")
    except BridgeError as exc:
        print(f"fd={handle}: {exc}")
    finally:
        transport.close(handle)


def main(port: int = 7008) -> None:
    ignore_broken_pipe()
    settings = BridgeSettings.from_env()
    sql = PgBridge(settings)
    try:
        conn = sql.connect()
    except ConnectError as exc:
        print("Lookup example skipped:", exc)
        return

    transport = SocketBridge(settings)
    server = transport.listen(port)
    print(f"Lookup server on port {port}; try: printf 'a\\n' | nc localhost {port}")
    # One connection at a time: the database handle is not shared across threads.
    try:
        with conn:
            while True:
                serve(transport, sql, conn, transport.accept(server))
    except KeyboardInterrupt:
        pass
    finally:
        transport.close(server)


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 7008)
