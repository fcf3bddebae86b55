"""Execute and query against Postgres (needs a running server)."""

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

from wirebridge import BridgeSettings, ConnectError, ExecError, PgBridge


def main() -> None:
    bridge = PgBridge(BridgeSettings.from_env())
    try:
        conn = bridge.connect()
    except ConnectError as exc:
        print("Postgres example skipped:", exc)
        print("Set WIREBRIDGE_PG_DSN or the PG* variables.")
        return

    with conn:
        bridge.execute(conn, "DROP TABLE IF EXISTS kv")
        bridge.execute(conn, "CREATE TABLE kv (name text PRIMARY KEY, value text)")
        for name, value in (("a", "1"), ("b", "2"), ("c", "3")):
            bridge.execute(conn, "INSERT INTO kv VALUES ($1, $2)", [name, value])

        print("Rows:", bridge.query(conn, "SELECT name, value FROM kv ORDER BY name"))
        print("Updated:", bridge.execute(conn, "UPDATE kv SET value = value || $1", ["!"]))

        try:
            bridge.execute(conn, "INSERT INTO kv VALUES ($1, $2)", ["a", "dup"])
        except ExecError as exc:
            # Only text and an optional SQLSTATE come back.
            print("Expected failure:", exc.sqlstate, exc)

        bridge.execute(conn, "DROP TABLE kv")


if __name__ == "__main__":
    main()
