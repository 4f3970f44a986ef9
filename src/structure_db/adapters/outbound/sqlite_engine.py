"""SQLite implementation of the RelationalEngine port.

Built on the standard library ``sqlite3`` driver. The handle is opened with
``isolation_level=None`` so the driver never starts or commits transactions
on its own; transaction boundaries come only from the statements the
Transaction Controller issues.

The driver exposes neither the bind parameters nor the result columns of a
statement before it runs, so preparing a query takes three steps:

    1. scan the query for its bind slots (``bind_slots.scan_query``),
    2. compile it without running it by executing ``EXPLAIN <query>``,
    3. for row-producing queries, run the query with every parameter bound
       to NULL and read the result columns from the cursor without fetching.
       A ``WITH`` query is run only if it can be wrapped as a subquery
       (``SELECT * FROM (<query>) WHERE 0``), which a write never can.

Columns that cannot be read this way (pragmas, ``RETURNING`` clauses) are
read from the cursor on the first step.

Thread Safety:
    The handle is created with ``check_same_thread=False`` but must only be
    used from the owning connection's execution queue.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Callable, Mapping, Sequence

from structure_db.domain.errors import (
    SQLITE_ERROR,
    SQLITE_MISUSE,
    EngineError,
    SQLSyntaxError,
)
from structure_db.domain.services.bind_slots import ScanResult, leading_keyword, scan_query
from structure_db.domain.value_objects import SQLValue
from structure_db.infrastructure.config import EngineConfig
from structure_db.infrastructure.logging import get_logger
from structure_db.ports.outbound import MEMORY_LOCATION

logger = get_logger(__name__)

DriverError = (sqlite3.Error, sqlite3.Warning)


def translate_error(exc: Exception, *, preparing: bool = False) -> EngineError:
    """Map a driver exception to the structure-db error taxonomy.

    Args:
        exc: Exception raised by ``sqlite3``.
        preparing: The failure happened while compiling a query, so it is
            always a rejection of the query text.
    """
    code = getattr(exc, "sqlite_errorcode", None)
    if code is None:
        # Raised by the driver itself, before SQLite saw the call.
        code = SQLITE_ERROR if isinstance(exc, sqlite3.ProgrammingError) else SQLITE_MISUSE
    message = str(exc) or type(exc).__name__
    if preparing or code & 0xFF == SQLITE_ERROR:
        return SQLSyntaxError(code, message)
    return EngineError(code, message)


def split_statements(script: str) -> list[str]:
    """Split ``script`` into complete statements, in order.

    Splitting follows ``sqlite3.complete_statement``, so semicolons inside
    literals, comments and trigger bodies stay with their statement.
    Pieces holding only whitespace or comments are dropped.
    """
    statements: list[str] = []
    pending = ""
    pieces = script.split(";")
    for position, piece in enumerate(pieces):
        pending += piece
        if position < len(pieces) - 1:
            pending += ";"
        if sqlite3.complete_statement(pending):
            statements.append(pending)
            pending = ""
    if pending:
        statements.append(pending)
    return [statement for statement in statements if leading_keyword(statement) is not None]


def _probe_parameters(scan: ScanResult) -> dict[str, None] | tuple[None, ...] | None:
    """Placeholder values that satisfy the driver without running anything."""
    if not scan.parameter_names:
        return {}
    if all(name is None for name in scan.parameter_names):
        return (None,) * scan.parameter_count
    if scan.has_unnamed:
        return None
    return {name[1:]: None for name in scan.parameter_names if name}


class SQLitePreparedStatement:
    """A compiled query bound to one ``sqlite3`` connection.

    Each instance drives its own cursor. The driver shares compiled
    statements through its cache only while they are idle, so two instances
    over the same query text can be stepped independently.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        query: str,
        parameter_names: Sequence[str | None],
        column_names: Sequence[str] | None,
    ) -> None:
        self._connection = connection
        self._query = query
        self._parameter_names = tuple(parameter_names)
        self._column_names = tuple(column_names) if column_names is not None else None
        self._cursor: sqlite3.Cursor | None = None
        self._done = False
        self._finalized = False

    @property
    def query(self) -> str:
        return self._query

    @property
    def parameter_names(self) -> tuple[str | None, ...]:
        return self._parameter_names

    @property
    def column_names(self) -> tuple[str, ...] | None:
        return self._column_names

    def step(self, parameters: Mapping[str, SQLValue]) -> tuple[SQLValue, ...] | None:
        if self._done:
            return None
        try:
            if self._cursor is None:
                self._cursor = self._connection.execute(self._query, dict(parameters))
                self._refresh_columns(self._cursor.description)
            row = self._cursor.fetchone()
        except DriverError as exc:
            self._done = True
            raise translate_error(exc) from exc
        if row is None:
            self._done = True
        return row

    def _refresh_columns(self, description: Any) -> None:
        if description is None:
            return
        names = tuple(column[0] for column in description)
        if names != self._column_names:
            self._column_names = names

    def reset(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None
        self._done = False

    def finalize(self) -> None:
        if self._finalized:
            return
        self.reset()
        self._finalized = True


class SQLiteEngine:
    """One open ``sqlite3`` handle.

    Usage:
        engine = SQLiteEngine.open(":memory:", EngineConfig())
        engine.execute("CREATE TABLE t (a INTEGER)")
        handle = engine.prepare("SELECT a FROM t WHERE a = :a")
    """

    def __init__(self, connection: sqlite3.Connection, location: str) -> None:
        self._connection = connection
        self._location = location

    @classmethod
    def open(cls, location: str = MEMORY_LOCATION, config: EngineConfig | None = None) -> SQLiteEngine:
        """Open (creating if needed) the database at ``location``.

        Raises:
            EngineError: If SQLite cannot open the database.
        """
        config = config or EngineConfig()
        try:
            connection = sqlite3.connect(
                location,
                timeout=config.busy_timeout_seconds,
                isolation_level=None,
                check_same_thread=False,
                cached_statements=config.cached_statements,
            )
        except DriverError as exc:
            raise translate_error(exc) from exc

        engine = cls(connection, location)
        if config.foreign_keys:
            engine.execute("PRAGMA foreign_keys = ON")
        logger.debug("sqlite_engine_opened", location=location, sqlite_version=sqlite3.sqlite_version)
        return engine

    @property
    def location(self) -> str:
        return self._location

    @property
    def in_transaction(self) -> bool:
        return self._connection.in_transaction

    def prepare(self, query: str) -> SQLitePreparedStatement:
        scan = scan_query(query)
        self._compile(query, scan)
        columns = self._describe(query, scan) if scan.returns_rows else None
        return SQLitePreparedStatement(self._connection, query, scan.parameter_names, columns)

    def _compile(self, query: str, scan: ScanResult) -> None:
        parameters = _probe_parameters(scan)
        if parameters is None:
            # Mixed named and unnamed slots; the driver cannot bind both.
            return
        text = query if scan.leading_keyword == "EXPLAIN" else f"EXPLAIN {query}"
        try:
            self._connection.execute(text, parameters).close()
        except DriverError as exc:
            raise translate_error(exc, preparing=True) from exc

    def _describe(self, query: str, scan: ScanResult) -> tuple[str, ...] | None:
        parameters = _probe_parameters(scan)
        if parameters is None:
            return None
        if scan.leading_keyword == "WITH" and not self._is_read_only(query, parameters):
            return None
        try:
            cursor = self._connection.execute(query, parameters)
        except DriverError:
            return None
        try:
            if cursor.description is None:
                return None
            return tuple(column[0] for column in cursor.description)
        finally:
            cursor.close()

    def _is_read_only(self, query: str, parameters: Mapping[str, None] | tuple[None, ...]) -> bool:
        # Only a SELECT can be wrapped as a subquery; a WITH ... INSERT cannot.
        body = query.rstrip().rstrip(";")
        try:
            self._connection.execute(f"SELECT * FROM (\n{body}\n) WHERE 0", parameters).close()
        except DriverError:
            return False
        return True

    def execute(self, query: str) -> None:
        for statement in split_statements(query):
            try:
                self._connection.execute(statement).close()
            except DriverError as exc:
                raise translate_error(exc) from exc

    def read_user_version(self) -> int:
        try:
            row = self._connection.execute("PRAGMA user_version").fetchone()
        except DriverError as exc:
            raise translate_error(exc) from exc
        return int(row[0])

    def write_user_version(self, version: int) -> None:
        try:
            self._connection.execute(f"PRAGMA user_version = {int(version)}").close()
        except DriverError as exc:
            raise translate_error(exc) from exc

    def create_function(
        self,
        name: str,
        num_args: int,
        func: Callable[..., Any],
        deterministic: bool,
    ) -> None:
        try:
            self._connection.create_function(name, num_args, func, deterministic=deterministic)
        except DriverError as exc:
            raise translate_error(exc) from exc

    def close(self) -> None:
        try:
            self._connection.close()
        except DriverError as exc:
            raise translate_error(exc) from exc
        logger.debug("sqlite_engine_closed", location=self._location)


def open_sqlite(location: str, config: EngineConfig) -> SQLiteEngine:
    """Default ``EngineFactory``."""
    return SQLiteEngine.open(location, config)
