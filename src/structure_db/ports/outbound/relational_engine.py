"""Relational Engine port.

This outbound port defines the contract structure-db needs from the
embedded SQL engine. The engine owns parsing, planning and storage; the
connection only drives it through these primitives.

Every method is called from the owning connection's execution queue, so
implementations never see two concurrent calls on the same handle.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Mapping, Protocol, Sequence

from structure_db.domain.value_objects import SQLValue

if TYPE_CHECKING:
    from structure_db.infrastructure.config import EngineConfig

MEMORY_LOCATION = ":memory:"
"""Location marker for a private in-memory database."""


class PreparedHandle(Protocol):
    """A compiled query owned by exactly one Statement.

    The handle keeps its own cursor: ``step`` starts execution on the first
    call after construction or ``reset`` and advances it afterwards.
    """

    @property
    @abstractmethod
    def query(self) -> str:
        """The query text the handle was prepared from."""
        ...

    @property
    @abstractmethod
    def parameter_names(self) -> Sequence[str | None]:
        """Bind slot names in slot order (slot 1 first).

        Names keep their prefix character (``:id``); unnamed slots are None.
        """
        ...

    @property
    @abstractmethod
    def column_names(self) -> Sequence[str | None] | None:
        """Result column names, or None while they are not yet known."""
        ...

    @abstractmethod
    def step(self, parameters: Mapping[str, SQLValue]) -> tuple[SQLValue, ...] | None:
        """Advance one row.

        Args:
            parameters: Values keyed by slot name without its prefix. Only
                read when execution starts.

        Returns:
            The next row, or None when the statement is done.

        Raises:
            EngineError: If the engine fails while running the statement.
        """
        ...

    @abstractmethod
    def reset(self) -> None:
        """Abandon the current run so the next ``step`` starts over."""
        ...

    @abstractmethod
    def finalize(self) -> None:
        """Release the engine resources held by this handle."""
        ...


class RelationalEngine(Protocol):
    """Protocol for one open engine handle."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Path or in-memory marker the handle was opened with."""
        ...

    @property
    @abstractmethod
    def in_transaction(self) -> bool:
        """Whether the engine has an open transaction."""
        ...

    @abstractmethod
    def prepare(self, query: str) -> PreparedHandle:
        """Compile ``query`` without running it.

        Raises:
            SQLSyntaxError: If the engine rejects the query.
        """
        ...

    @abstractmethod
    def execute(self, query: str) -> None:
        """Run ``query`` (one or more statements) immediately.

        Raises:
            SQLSyntaxError: If the engine rejects a statement.
            EngineError: If a statement fails while running.
        """
        ...

    @abstractmethod
    def read_user_version(self) -> int:
        """Read the persisted schema version cell."""
        ...

    @abstractmethod
    def write_user_version(self, version: int) -> None:
        """Write the persisted schema version cell."""
        ...

    @abstractmethod
    def create_function(
        self,
        name: str,
        num_args: int,
        func: Callable[..., Any],
        deterministic: bool,
    ) -> None:
        """Register a scalar SQL function for the lifetime of the handle."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the handle. Open transactions are rolled back by the engine."""
        ...


EngineFactory = Callable[[str, "EngineConfig"], RelationalEngine]
"""Opens an engine handle for a location with the given settings."""
