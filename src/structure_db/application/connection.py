"""Connection - the entry point of structure-db.

A Connection owns one engine handle and the execution queue that
serializes every operation on it. Any number of threads may share a
Connection; their operations run one at a time, in submission order.
Code that already runs inside the queue (row callbacks, transaction and
migration bodies, scalar functions) may call back into the Connection
without deadlocking.

Usage:
    from structure_db import Connection, Integer, Text

    with Connection.open("app.db") as db:
        db.migrate(1, lambda c: c.execute(
            "CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT)"
        ))

        insert = db.prepare("INSERT INTO people (name) VALUES (:name)")
        insert.bind(Text("Alice"), for_="name")
        db.perform(insert)

        select = db.prepare("SELECT id, name FROM people")
        db.perform(select, lambda row: print(row.integer("id"), row.text("name")))
"""

from __future__ import annotations

import os
import time
import weakref
from contextlib import contextmanager
from typing import Any, Callable, Generator, Iterable, Sequence, TypeVar

from structure_db.adapters.outbound.sqlite_engine import open_sqlite
from structure_db.application.row import Row
from structure_db.application.statement import Statement, bind_map
from structure_db.domain.errors import UnexpectedRowError, lifecycle_violation
from structure_db.domain.services import (
    ExecutionQueue,
    MigrationController,
    TransactionController,
    scan_query,
)
from structure_db.domain.value_objects import (
    UNICODE_CASE_FUNCTIONS,
    Migration,
    ScalarFunction,
    validate_version,
)
from structure_db.infrastructure.config import Config, get_config
from structure_db.infrastructure.logging import get_logger
from structure_db.infrastructure.metrics import MetricsRegistry, get_metrics
from structure_db.infrastructure.tracing import trace_span
from structure_db.ports.outbound import MEMORY_LOCATION, EngineFactory, RelationalEngine

T = TypeVar("T")

logger = get_logger(__name__)


def _owner_trampoline(
    owner: weakref.ReferenceType[Connection],
    function: ScalarFunction,
) -> Callable[..., Any]:
    """Wrap ``function`` so it receives its live Connection first."""

    def call(*args: Any) -> Any:
        connection = owner()
        if connection is None or not connection.is_open:
            raise lifecycle_violation(
                "Scalar function called after its connection was released",
                function=function.name,
            )
        return function.func(connection, *args)

    return call


class Connection:
    """One logical connection to a relational store.

    Create instances with ``Connection.open``.

    Thread Safety:
        All methods may be called from any thread. Statements are not
        thread-safe; see ``Statement``.
    """

    def __init__(
        self,
        engine: RelationalEngine,
        queue: ExecutionQueue,
        config: Config,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._engine: RelationalEngine | None = engine
        self._queue = queue
        self._config = config
        self._metrics = metrics
        self._location = engine.location
        self._transactions: TransactionController[Connection] = TransactionController(
            queue,
            lambda query: self._require_open().execute(query),
            metrics,
        )
        self._migrations: MigrationController[Connection] = MigrationController(
            queue,
            self._transactions,
            lambda: self._require_open().read_user_version(),
            lambda version: self._require_open().write_user_version(version),
            metrics,
        )

    @classmethod
    def open(
        cls,
        location: str | os.PathLike[str] = MEMORY_LOCATION,
        *,
        functions: Iterable[ScalarFunction] = (),
        config: Config | None = None,
        metrics: MetricsRegistry | None = None,
        engine_factory: EngineFactory = open_sqlite,
    ) -> Connection:
        """Open a database file, or a private in-memory database.

        Args:
            location: Path of the database file, or ``":memory:"``.
            functions: Scalar functions registered for the connection's lifetime.
            config: Settings to use (the global configuration if omitted).
            metrics: Metrics registry (the process-wide one if omitted).
            engine_factory: Opens the engine handle.

        Raises:
            EngineError: If the engine cannot open the location or register
                a function.
        """
        config = config or get_config()
        metrics = metrics or get_metrics()
        location = os.fspath(location)

        queue = ExecutionQueue(config.queue.thread_name_prefix, metrics)
        try:
            engine = queue.run(lambda: engine_factory(location, config.engine))
        except BaseException:
            queue.shutdown()
            raise

        connection = cls(engine, queue, config, metrics)
        metrics.connections_open.inc()
        registered: list[ScalarFunction] = []
        if config.engine.unicode_case_functions:
            registered.extend(UNICODE_CASE_FUNCTIONS)
        registered.extend(functions)
        try:
            queue.run(lambda: connection._register_functions(registered))
        except BaseException:
            connection.close()
            raise

        logger.info(
            "connection_opened",
            location=location,
            functions=[function.name for function in registered],
        )
        return connection

    def _register_functions(self, functions: Sequence[ScalarFunction]) -> None:
        engine = self._require_open()
        owner = weakref.ref(self)
        for function in functions:
            func = _owner_trampoline(owner, function) if function.pass_connection else function.func
            engine.create_function(function.name, function.num_args, func, function.deterministic)

    # State

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def location(self) -> str:
        return self._location

    @property
    def in_transaction(self) -> bool:
        """Whether the engine currently has an open transaction."""
        return self._run("in_transaction", lambda engine: engine.in_transaction)

    @property
    def schema_version(self) -> int:
        """The persisted schema version. Read from the engine on every access."""
        return self._run("schema_version", lambda engine: engine.read_user_version())

    def _write_schema_version(self, version: int) -> None:
        validate_version(version)
        self._run("schema_version", lambda engine: engine.write_user_version(version))

    def close(self) -> None:
        """Close the engine handle and stop the execution queue.

        Raises:
            ResourceLifecycleViolation: If the connection is already closed.
            EngineError: If the engine fails to close.
        """
        if self._engine is None:
            raise lifecycle_violation("Connection closed twice", location=self._location)

        def shut() -> None:
            engine = self._require_open()
            self._engine = None
            engine.close()

        try:
            self._queue.run(shut)
        finally:
            self._queue.shutdown()
            if self._metrics is not None:
                self._metrics.connections_open.dec()
            logger.info("connection_closed", location=self._location)

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self.is_open:
            self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"Connection({self._location!r}, {state})"

    # Statements

    def prepare(self, query: str) -> Statement:
        """Compile ``query`` into a reusable Statement.

        Raises:
            NamingError: If a bind parameter or column cannot be named.
            SQLSyntaxError: If the engine rejects the query.
        """
        bind_map(scan_query(query).parameter_names)
        handle = self._run("prepare", lambda engine: engine.prepare(query))
        statement = Statement(self, handle, self._metrics)
        if self._metrics is not None:
            self._metrics.statements_prepared_total.inc()
            self._metrics.statements_open.inc()
        logger.debug("statement_prepared", query=query, parameters=statement.parameter_count)
        return statement

    def execute(self, query: str) -> None:
        """Run one or more ``;``-separated statements, with no bindings.

        Statements run in order and stop at the first failure.

        Raises:
            SQLSyntaxError: If the engine rejects a statement.
            EngineError: If a statement fails while running.
        """
        self._run("execute", lambda engine: engine.execute(query))

    def perform(self, statement: Statement, on_row: Callable[[Row], Any] | None = None) -> None:
        """Run ``statement`` to completion, calling ``on_row`` for every row.

        The statement is reset afterwards, whether or not it succeeded.

        Raises:
            UnexpectedRowError: If a row is produced and ``on_row`` is None.
            EngineError: If the engine fails while running the statement.
            Exception: Whatever ``on_row`` raised.
        """
        self._check_owner(statement)
        with trace_span("perform", {"statement": statement.query}):
            self._run("perform", lambda _: self._drive(statement, on_row))

    def _drive(self, statement: Statement, on_row: Callable[[Row], Any] | None) -> None:
        statement._ensure_live()
        try:
            while (row := statement._step()) is not None:
                if on_row is None:
                    raise UnexpectedRowError(
                        f"perform() produced a row with no row callback: {statement.query!r}"
                    )
                on_row(row)
        finally:
            statement._reset_handle()

    def step(self, statement: Statement) -> Row | None:
        """Advance ``statement`` by one row.

        Returns:
            The row produced, or None once the statement is done. A done
            statement keeps returning None until it is reset.
        """
        self._check_owner(statement)
        return self._run("step", lambda _: statement._step())

    def _check_owner(self, statement: Statement) -> None:
        if statement.connection is not self:
            raise ValueError("Statement was prepared by a different connection")

    # Units of work

    def transaction(self, body: Callable[[Connection], T]) -> T:
        """Run ``body(self)`` inside BEGIN/COMMIT and return its result.

        If ``body`` raises, the transaction is rolled back and the same
        exception propagates.

        Raises:
            NestedTransactionError: If called from inside a transaction body.
            EngineError: If BEGIN or COMMIT fails.
        """
        self._require_open()
        with trace_span("transaction"), self._measured("transaction"):
            return self._transactions.run(self, body)

    def migrate(self, version: int, body: Callable[[Connection], Any]) -> bool:
        """Apply ``body`` as the migration to schema ``version``.

        Returns:
            True if the body ran, False if the schema was already at or past
            ``version``.

        Raises:
            MigrationOrderError: If ``version`` is not the next version.
        """
        self._require_open()
        with trace_span("migrate", {"version": version}), self._measured("migrate"):
            return self._migrations.migrate(self, version, body)

    def migrate_all(self, migrations: Iterable[Migration]) -> list[int]:
        """Apply every pending migration, lowest version first.

        Returns:
            The versions applied by this call.
        """
        self._require_open()
        with trace_span("migrate_all"), self._measured("migrate"):
            return self._migrations.migrate_all(self, migrations)

    # Execution plumbing

    def _require_open(self) -> RelationalEngine:
        engine = self._engine
        if engine is None:
            raise lifecycle_violation("Connection used after close", location=self._location)
        return engine

    def _run(self, operation: str, work: Callable[[RelationalEngine], T]) -> T:
        self._require_open()
        with self._measured(operation):
            return self._queue.run(lambda: work(self._require_open()))

    @contextmanager
    def _measured(self, operation: str) -> Generator[None, None, None]:
        if self._metrics is None:
            yield
            return
        started = time.perf_counter()
        status = "error"
        try:
            yield
            status = "success"
        finally:
            self._metrics.operations_total.labels(operation=operation, status=status).inc()
            self._metrics.operation_latency_seconds.labels(operation=operation).observe(
                time.perf_counter() - started
            )
