"""Parameterized PostgreSQL execution with text-only result decoding."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

import psycopg
from psycopg.pq import DiagnosticField, ExecStatus, Format

from ...core.config import BridgeSettings
from ...core.errors import ConnectError, ExecError, QueryError, SqlError
from ...core.types import NullableTable, Params, Table
from .connection import PgConnection

logger = logging.getLogger(__name__)

_EXEC_OK = frozenset({ExecStatus.COMMAND_OK, ExecStatus.TUPLES_OK})
_QUERY_OK = frozenset({ExecStatus.TUPLES_OK})


def _diagnostic(exc: BaseException) -> str:
    """Return the server/libpq message of `exc` without trailing newlines."""

    message = str(exc).strip()
    return message or type(exc).__name__


def _bind_params(params: Optional[Params]) -> Optional[List[str]]:
    """Validate positional parameters for `$n` placeholders.

    No parameters are sent as `None` ("nothing bound") rather than an empty
    list.
    """

    if not params:
        return None
    if isinstance(params, (str, bytes)):
        raise TypeError("params must be a sequence of str, not a single string.")
    bound = list(params)
    for index, value in enumerate(bound, start=1):
        if not isinstance(value, str):
            raise TypeError(
                f"parameter ${index} must be str, got {type(value).__name__}."
            )
    return bound


def _status_name(status: int) -> str:
    try:
        return ExecStatus(status).name
    except ValueError:
        return str(status)


def _result_error(result: Any, encoding: str, error: type[SqlError]) -> SqlError:
    """Build `error` from a result whose status was not accepted."""

    message = (result.error_message or b"").decode(encoding, "replace").strip()
    raw_state = result.error_field(DiagnosticField.SQLSTATE)
    sqlstate = raw_state.decode("ascii", "replace") if raw_state else None
    if not message:
        message = f"unexpected result status: {_status_name(result.status)}"
    return error(message, sqlstate=sqlstate)


class PgBridge:
    """Connect, execute and query with every value crossing as text.

    Statements use `$1`, `$2`, ... placeholders bound by position and always
    go through the extended query protocol, with or without parameters, so a
    statement string holds exactly one command. The server performs all type
    coercion; parameters are sent with unknown type and cells come back in
    text format.
    """

    def __init__(self, settings: Optional[BridgeSettings] = None):
        self.settings = settings if settings is not None else BridgeSettings()

    def connect(self, conninfo: Optional[str] = None) -> PgConnection:
        """Open a connection from a libpq connection string.

        Args:
            conninfo: `key=value` pairs or a `postgresql://` URI. Defaults to
                `settings.pg_conninfo`.
        """

        if conninfo is None:
            conninfo = self.settings.pg_conninfo
        try:
            raw = psycopg.connect(conninfo, autocommit=True, prepare_threshold=None)
        except psycopg.Error as exc:
            raise ConnectError(
                _diagnostic(exc), sqlstate=getattr(exc, "sqlstate", None)
            ) from exc
        logger.debug("opened database connection %#x", id(raw))
        return PgConnection(raw)

    def _run(
        self,
        conn: PgConnection,
        statement: str,
        params: Optional[Params],
        error: type[SqlError],
        accepted: frozenset,
        consume: Callable[[Any, str], Any],
    ) -> Any:
        raw = conn._require_open_connection()  # noqa: SLF001
        bound = _bind_params(params)
        encoding = raw.info.encoding
        values = None if bound is None else [value.encode(encoding) for value in bound]
        try:
            result = raw.pgconn.exec_params(
                statement.encode(encoding), values, result_format=Format.TEXT
            )
        except psycopg.Error as exc:
            raise error(
                _diagnostic(exc), sqlstate=getattr(exc, "sqlstate", None)
            ) from exc
        try:
            if result.status not in accepted:
                raise _result_error(result, encoding, error)
            return consume(result, encoding)
        finally:
            result.clear()

    def execute(self, conn: PgConnection, statement: str, params: Params = ()) -> int:
        """Run a mutating statement and return its rows-affected count.

        A missing or empty command tag counts as 0.
        """

        return self._run(conn, statement, params, ExecError, _EXEC_OK, _affected_rows)

    def query(
        self,
        conn: PgConnection,
        statement: str,
        params: Params = (),
        *,
        null: Optional[str] = "",
    ) -> Table | NullableTable:
        """Run a reading statement and return its rows as lists of text.

        Args:
            null: Value substituted for SQL NULL cells. The default `""`
                makes NULL indistinguishable from empty text; pass `None` to
                keep them apart.
        """

        def consume(result: Any, encoding: str) -> Table | NullableTable:
            return _materialize(result, encoding, null)

        return self._run(conn, statement, params, QueryError, _QUERY_OK, consume)


def _affected_rows(result: Any, _encoding: str) -> int:
    count = result.command_tuples
    return count if count else 0


def _materialize(result: Any, encoding: str, null: Optional[str]) -> Table | NullableTable:
    """Copy a text-format result row-major into nested lists."""

    table = []
    for row in range(result.ntuples):
        cells = []
        for col in range(result.nfields):
            value = result.get_value(row, col)
            cells.append(null if value is None else bytes(value).decode(encoding))
        table.append(cells)
    return table
