from __future__ import annotations

import gc
import unittest
from unittest.mock import patch

import psycopg
from psycopg.pq import DiagnosticField, ExecStatus, Format

from wirebridge import (
    BridgeSettings,
    ConnectError,
    ExecError,
    PgBridge,
    PgConnection,
    QueryError,
)


class _FakeResult:
    def __init__(
        self,
        status,
        rows=(),
        *,
        command_tuples=None,
        encoding="utf-8",
        error_message=b"",
        sqlstate=None,
    ):  # noqa: ANN001
        # libpq reports the status as a plain int, not an ExecStatus member.
        self.status = int(status)
        self._rows = [list(row) for row in rows]
        self.ntuples = len(self._rows)
        self.nfields = len(self._rows[0]) if self._rows else 0
        self.command_tuples = command_tuples
        self.error_message = error_message
        self._sqlstate = sqlstate
        self._encoding = encoding
        self.cleared = False

    def get_value(self, row: int, col: int):  # noqa: ANN201
        value = self._rows[row][col]
        if value is None:
            return None
        return value.encode(self._encoding)

    def error_field(self, fieldcode):  # noqa: ANN001,ANN201
        if fieldcode == DiagnosticField.SQLSTATE and self._sqlstate:
            return self._sqlstate.encode("ascii")
        return None

    def clear(self) -> None:
        self.cleared = True


class _FakePGconn:
    def __init__(self, owner: _FakePgConn):
        self._owner = owner

    def exec_params(self, command, param_values, param_types=None, param_formats=None, result_format=Format.TEXT):  # noqa: ANN001,ANN201,E501
        self._owner.calls.append((command, param_values, result_format))
        outcome = self._owner.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        self._owner.results.append(outcome)
        return outcome


class _FakeInfo:
    def __init__(self, encoding: str):
        self.encoding = encoding


class _FakePgConn:
    def __init__(self, *outcomes, encoding: str = "utf-8"):
        self.outcomes = list(outcomes)
        self.calls: list[tuple] = []
        self.results: list[_FakeResult] = []
        self.close_calls = 0
        self.info = _FakeInfo(encoding)
        self.pgconn = _FakePGconn(self)

    def close(self) -> None:
        self.close_calls += 1


def _tuples(rows, **kwargs) -> _FakeResult:  # noqa: ANN001
    return _FakeResult(ExecStatus.TUPLES_OK, rows, **kwargs)


def _command(count=None) -> _FakeResult:  # noqa: ANN001
    return _FakeResult(ExecStatus.COMMAND_OK, command_tuples=count)


def _fatal(message: bytes, sqlstate: str) -> _FakeResult:
    return _FakeResult(ExecStatus.FATAL_ERROR, error_message=message, sqlstate=sqlstate)


class PgBridgeTestCase(unittest.TestCase):
    def _open(self, *outcomes, encoding: str = "utf-8") -> tuple[PgConnection, _FakePgConn]:
        raw = _FakePgConn(*outcomes, encoding=encoding)
        with patch.object(psycopg, "connect", return_value=raw):
            conn = PgBridge().connect("dbname=test")
        self.addCleanup(conn.close)
        return conn, raw


class ConnectTests(PgBridgeTestCase):
    def test_connect_uses_autocommit_without_preparing(self) -> None:
        raw = _FakePgConn()
        with patch.object(psycopg, "connect", return_value=raw) as connect:
            conn = PgBridge().connect("host=db dbname=app")

        connect.assert_called_once_with(
            "host=db dbname=app",
            autocommit=True,
            prepare_threshold=None,
        )
        self.assertIsInstance(conn, PgConnection)
        self.assertFalse(conn.closed)
        conn.close()

    def test_connect_defaults_to_settings_conninfo(self) -> None:
        bridge = PgBridge(BridgeSettings(pg_conninfo="dbname=fromsettings"))
        with patch.object(psycopg, "connect", return_value=_FakePgConn()) as connect:
            bridge.connect().close()
        self.assertEqual(connect.call_args.args[0], "dbname=fromsettings")

    def test_connect_failure_raises_connect_error_with_diagnostic(self) -> None:
        failure = psycopg.OperationalError("connection refused\n")
        with patch.object(psycopg, "connect", side_effect=failure):
            with self.assertRaises(ConnectError) as ctx:
                PgBridge().connect("host=nowhere")

        self.assertEqual(str(ctx.exception), "connection refused")
        self.assertIs(ctx.exception.__cause__, failure)


class ExecuteTests(PgBridgeTestCase):
    def test_execute_returns_affected_rows(self) -> None:
        conn, raw = self._open(_command(3))
        affected = PgBridge().execute(
            conn, "UPDATE t SET v = $1 WHERE name = $2", ["x", "a"]
        )

        self.assertEqual(affected, 3)
        self.assertEqual(
            raw.calls,
            [(b"UPDATE t SET v = $1 WHERE name = $2", [b"x", b"a"], Format.TEXT)],
        )

    def test_missing_or_empty_command_tag_counts_as_zero(self) -> None:
        conn, _raw = self._open(_command(None), _command(0))
        bridge = PgBridge()
        self.assertEqual(bridge.execute(conn, "CREATE TABLE t (v text)"), 0)
        self.assertEqual(bridge.execute(conn, "UPDATE t SET v = ''"), 0)

    def test_zero_params_use_the_same_parameterized_dispatch(self) -> None:
        conn, raw = self._open(_command(1), _command(1))
        bridge = PgBridge()
        bridge.execute(conn, "DELETE FROM t")
        bridge.execute(conn, "DELETE FROM t", [])

        self.assertEqual(
            raw.calls,
            [(b"DELETE FROM t", None, Format.TEXT), (b"DELETE FROM t", None, Format.TEXT)],
        )

    def test_execute_accepts_data_bearing_result(self) -> None:
        conn, _raw = self._open(_tuples([["1"]], command_tuples=1))
        affected = PgBridge().execute(conn, "INSERT INTO t VALUES ($1) RETURNING 1", ["a"])
        self.assertEqual(affected, 1)

    def test_non_text_params_are_rejected_before_dispatch(self) -> None:
        conn, raw = self._open()
        with self.assertRaises(TypeError):
            PgBridge().execute(conn, "SELECT $1", [1])
        with self.assertRaises(TypeError):
            PgBridge().execute(conn, "SELECT $1", "abc")
        self.assertEqual(raw.calls, [])

    def test_server_error_becomes_exec_error_and_releases_result(self) -> None:
        conn, raw = self._open(
            _fatal(b"ERROR:  duplicate key value violates unique constraint\n", "23505")
        )

        with self.assertRaises(ExecError) as ctx:
            PgBridge().execute(conn, "INSERT INTO t VALUES ($1)", ["a"])

        self.assertEqual(
            ctx.exception.message, "ERROR:  duplicate key value violates unique constraint"
        )
        self.assertEqual(ctx.exception.sqlstate, "23505")
        self.assertTrue(raw.results[0].cleared)

    def test_stacked_statements_are_refused(self) -> None:
        conn, _raw = self._open(
            _fatal(b"ERROR:  cannot insert multiple commands into a prepared statement\n", "42601")
        )
        with self.assertRaises(ExecError) as ctx:
            PgBridge().execute(conn, "SELECT 1; SELECT 2")
        self.assertIn("multiple commands", str(ctx.exception))

    def test_unexpected_status_is_named_in_exec_error(self) -> None:
        conn, raw = self._open(_FakeResult(ExecStatus.EMPTY_QUERY))
        with self.assertRaises(ExecError) as ctx:
            PgBridge().execute(conn, "")
        self.assertEqual(str(ctx.exception), "unexpected result status: EMPTY_QUERY")
        self.assertIsNone(ctx.exception.sqlstate)
        self.assertTrue(raw.results[0].cleared)

    def test_connection_level_failure_becomes_exec_error(self) -> None:
        failure = psycopg.OperationalError("executing query failed: server closed the connection\n")
        conn, _raw = self._open(failure)
        with self.assertRaises(ExecError) as ctx:
            PgBridge().execute(conn, "DELETE FROM t")
        self.assertIs(ctx.exception.__cause__, failure)

    def test_result_is_released_after_success(self) -> None:
        conn, raw = self._open(_command(2))
        PgBridge().execute(conn, "DELETE FROM t")
        self.assertTrue(raw.results[0].cleared)


class QueryTests(PgBridgeTestCase):
    def test_query_returns_rows_in_server_order(self) -> None:
        conn, raw = self._open(_tuples([["a", "1"], ["b", "2"]]))
        table = PgBridge().query(conn, "SELECT name, value FROM t ORDER BY name")

        self.assertEqual(table, [["a", "1"], ["b", "2"]])
        self.assertTrue(raw.results[0].cleared)

    def test_null_cells_become_empty_text_by_default(self) -> None:
        conn, _raw = self._open(_tuples([["a", None], ["", "2"]]))
        table = PgBridge().query(conn, "SELECT name, value FROM t")
        self.assertEqual(table, [["a", ""], ["", "2"]])

    def test_nullable_cells_on_request(self) -> None:
        conn, _raw = self._open(_tuples([["a", None], ["", "2"]]))
        table = PgBridge().query(conn, "SELECT name, value FROM t", null=None)
        self.assertEqual(table, [["a", None], ["", "2"]])

    def test_empty_result_is_empty_table(self) -> None:
        conn, _raw = self._open(_tuples([]))
        self.assertEqual(PgBridge().query(conn, "SELECT 1 WHERE false"), [])

    def test_text_is_encoded_and_decoded_with_connection_encoding(self) -> None:
        conn, raw = self._open(
            _tuples([["café"]], encoding="latin-1"), encoding="latin-1"
        )
        self.assertEqual(PgBridge().query(conn, "SELECT $1", ["café"]), [["café"]])
        self.assertEqual(raw.calls[0][1], ["café".encode("latin-1")])

    def test_command_result_is_query_error(self) -> None:
        conn, raw = self._open(_command(1))
        with self.assertRaises(QueryError) as ctx:
            PgBridge().query(conn, "DELETE FROM t")
        self.assertEqual(str(ctx.exception), "unexpected result status: COMMAND_OK")
        self.assertTrue(raw.results[0].cleared)

    def test_server_error_becomes_query_error(self) -> None:
        conn, _raw = self._open(_fatal(b'ERROR:  relation "t" does not exist\n', "42P01"))
        with self.assertRaises(QueryError) as ctx:
            PgBridge().query(conn, "SELECT * FROM t")
        self.assertEqual(ctx.exception.sqlstate, "42P01")


class ConnectionHandleTests(PgBridgeTestCase):
    def test_close_releases_native_connection_once(self) -> None:
        conn, raw = self._open()
        conn.close()
        conn.close()
        self.assertTrue(conn.closed)
        self.assertEqual(raw.close_calls, 1)

    def test_context_manager_releases_on_exit(self) -> None:
        conn, raw = self._open()
        with conn as handle:
            self.assertIs(handle, conn)
        self.assertEqual(raw.close_calls, 1)

    def test_collector_releases_unreachable_handle(self) -> None:
        raw = _FakePgConn()
        handle = PgConnection(raw)
        del handle
        gc.collect()
        self.assertEqual(raw.close_calls, 1)

    def test_use_after_release_is_refused(self) -> None:
        conn, raw = self._open(_command(1))
        conn.close()
        with self.assertRaises(RuntimeError):
            PgBridge().execute(conn, "DELETE FROM t")
        with self.assertRaises(RuntimeError):
            PgBridge().query(conn, "SELECT 1")
        self.assertEqual(raw.calls, [])


if __name__ == "__main__":
    unittest.main()
