"""Prepared statements.

A Statement owns one prepared handle from the engine, the values bound to
its parameters, and the maps from parameter and column names to positions.
It is created by ``Connection.prepare`` and driven by ``Connection.perform``
and ``Connection.step``.

Every bind parameter must be named with a ``:``, ``@`` or ``$`` prefix; the
name without its prefix is the key passed to ``bind(value, for_=...)``.

Example:
    with connection.prepare("INSERT INTO people (name) VALUES (:name)") as insert:
        insert.bind(Text("Alice"), for_="name")
        connection.perform(insert)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from structure_db.application.row import Row
from structure_db.domain.errors import NamingError, lifecycle_violation
from structure_db.domain.services.bind_slots import NAMED_PREFIXES
from structure_db.domain.value_objects import BindValue, SQLValue
from structure_db.infrastructure.logging import get_logger
from structure_db.infrastructure.metrics import MetricsRegistry
from structure_db.ports.outbound import PreparedHandle

if TYPE_CHECKING:
    from structure_db.application.connection import Connection

logger = get_logger(__name__)


def bind_map(parameter_names: Sequence[str | None]) -> dict[str, int]:
    """Map each parameter key to its 1-based slot.

    Raises:
        NamingError: If a slot is unnamed, has an empty name, or uses a
            prefix other than ``:``, ``@`` or ``$``.
    """
    mapping: dict[str, int] = {}
    for index, name in enumerate(parameter_names, start=1):
        if name is None:
            raise NamingError(f"Bind parameter {index} was not named")
        if len(name) < 2:
            raise NamingError(f"Bind parameter {index} has an empty name")
        if name[0] not in NAMED_PREFIXES:
            raise NamingError(f"Bind parameter {index} has an invalid name of {name}")
        mapping[name[1:]] = index
    return mapping


def column_map(column_names: Sequence[str | None] | None) -> dict[str, int]:
    """Map each result column name to its 0-based ordinal.

    Raises:
        NamingError: If a column has no usable name.
    """
    mapping: dict[str, int] = {}
    for index, name in enumerate(column_names or ()):
        if not name:
            raise NamingError(f"Column {index} was not named")
        mapping[name] = index
    return mapping


class Statement:
    """A compiled query with its bound values.

    A Statement is not safe to drive from two threads at once. Binding from
    inside a transaction body is safe, since the body runs in the
    connection's execution queue.
    """

    def __init__(
        self,
        connection: Connection,
        handle: PreparedHandle,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._connection = connection
        self._handle = handle
        self._metrics = metrics
        self._parameter_names = tuple(handle.parameter_names)
        self._bind_parameters = bind_map(self._parameter_names)
        self._column_names = handle.column_names
        self._columns = column_map(self._column_names)
        self._values: list[SQLValue] = [None] * len(self._parameter_names)
        self._generation = 0
        self._finalized = False

    # Read-only views

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def query(self) -> str:
        return self._handle.query

    @property
    def bind_parameters(self) -> dict[str, int]:
        """Parameter key (prefix stripped) to 1-based slot."""
        return dict(self._bind_parameters)

    @property
    def columns(self) -> dict[str, int]:
        """Result column name to 0-based ordinal."""
        return dict(self._columns)

    @property
    def parameter_count(self) -> int:
        return len(self._parameter_names)

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    # Binding

    def bind(
        self,
        value: BindValue | None,
        *,
        at: int | None = None,
        for_: str | None = None,
    ) -> None:
        """Bind ``value`` to a slot, chosen by position (``at``) or key (``for_``).

        None binds NULL. A key the query does not use is ignored.

        Raises:
            TypeError: If ``value`` is not a BindValue or None, or not
                exactly one of ``at`` and ``for_`` is given.
            IndexError: If ``at`` is outside ``1..parameter_count``.
            ResourceLifecycleViolation: If the statement was finalized.
        """
        self._ensure_live()
        if value is not None and not isinstance(value, BindValue):
            raise TypeError(f"Expected a BindValue or None, got {type(value).__name__}")
        if (at is None) == (for_ is None):
            raise TypeError("bind() takes exactly one of 'at' or 'for_'")

        if for_ is not None:
            index = self._bind_parameters.get(for_)
            if index is None:
                return
        else:
            index = at
            if isinstance(index, bool) or not isinstance(index, int):
                raise TypeError(f"Bind index must be an int, got {type(index).__name__}")
            if not 1 <= index <= len(self._values):
                raise IndexError(
                    f"Bind index {index} out of range 1..{len(self._values)}"
                )

        self._values[index - 1] = None if value is None else value.sql_value

    def clear_bindings(self) -> None:
        """Set every slot back to NULL."""
        self._ensure_live()
        self._values = [None] * len(self._values)

    # Lifecycle

    def reset(self) -> None:
        """Return to the pre-execution state. Bound values are kept."""
        self._ensure_live()
        self._connection._run("reset", lambda _: self._reset_handle())

    def finalize(self) -> None:
        """Release the prepared handle.

        Raises:
            ResourceLifecycleViolation: If the statement was already finalized.
        """
        if self._finalized:
            raise lifecycle_violation("Statement finalized twice", query=self.query)

        if self._connection.is_open:
            self._connection._run("finalize", lambda _: self._release())
        else:
            # The engine released every handle when the connection closed.
            self._mark_released()

    def __enter__(self) -> Statement:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self._finalized:
            self.finalize()

    def __repr__(self) -> str:
        state = "finalized" if self._finalized else "live"
        return f"Statement({self.query!r}, {state})"

    # Execution-context primitives, called by the owning Connection

    def _ensure_live(self) -> None:
        if self._finalized:
            raise lifecycle_violation("Statement used after finalize", query=self.query)

    def _parameters(self) -> dict[str, SQLValue]:
        return {
            name[1:]: value
            for name, value in zip(self._parameter_names, self._values)
            if name
        }

    def _step(self) -> Row | None:
        self._ensure_live()
        self._generation += 1
        values = self._handle.step(self._parameters())
        if self._handle.column_names != self._column_names:
            self._column_names = self._handle.column_names
            self._columns = column_map(self._column_names)
        if values is None:
            return None
        return Row(self, self._generation, tuple(values), self._columns)

    def _reset_handle(self) -> None:
        self._ensure_live()
        self._generation += 1
        self._handle.reset()

    def _release(self) -> None:
        if self._finalized:
            raise lifecycle_violation("Statement finalized twice", query=self.query)
        self._handle.finalize()
        self._mark_released()

    def _mark_released(self) -> None:
        self._finalized = True
        self._generation += 1
        if self._metrics is not None:
            self._metrics.statements_open.dec()
        logger.debug("statement_finalized", query=self.query)
