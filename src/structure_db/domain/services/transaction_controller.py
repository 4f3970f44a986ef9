"""Transaction Controller.

Wraps a unit of work in BEGIN/COMMIT, rolling back when the unit raises.
The unit runs inside the connection's execution queue, so statements it
issues are serialized and isolated from every other caller of the same
connection.

The engine allows one open transaction per connection. Starting a second
one from inside a body is rejected before anything reaches the engine.
"""

from __future__ import annotations

import time
from typing import Callable, Generic, TypeVar

from structure_db.domain.errors import EngineError, NestedTransactionError
from structure_db.domain.services.execution_queue import ExecutionQueue
from structure_db.domain.value_objects import TransactionState, TransactionStatement
from structure_db.infrastructure.logging import get_logger
from structure_db.infrastructure.metrics import MetricsRegistry

OwnerT = TypeVar("OwnerT")
ResultT = TypeVar("ResultT")

logger = get_logger(__name__)


class TransactionController(Generic[OwnerT]):
    """Begin/commit/rollback around caller-supplied bodies.

    Args:
        queue: Execution queue of the owning connection.
        execute: Issues an immediate engine statement.
        metrics: Registry receiving transaction outcomes.
    """

    def __init__(
        self,
        queue: ExecutionQueue,
        execute: Callable[[str], None],
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._queue = queue
        self._execute = execute
        self._metrics = metrics
        self._state = TransactionState.IDLE
        self._last_outcome: TransactionState | None = None

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def last_outcome(self) -> TransactionState | None:
        """COMMITTED or ROLLED_BACK for the most recent unit, if any."""
        return self._last_outcome

    def run(self, owner: OwnerT, body: Callable[[OwnerT], ResultT]) -> ResultT:
        """Run ``body(owner)`` as one transaction and return its result.

        Raises:
            NestedTransactionError: If a transaction is already active.
            EngineError: If BEGIN or COMMIT fails.
            Exception: Whatever ``body`` raised, after rolling back.
        """
        return self._queue.run(lambda: self._unit(owner, body))

    def _unit(self, owner: OwnerT, body: Callable[[OwnerT], ResultT]) -> ResultT:
        if self._state.is_active():
            self._count("rejected")
            raise NestedTransactionError(
                "transaction() called inside an active transaction; nesting is not supported"
            )

        self._execute(TransactionStatement.BEGIN.value)
        self._state = TransactionState.ACTIVE
        if self._metrics is not None:
            self._metrics.transactions_active.inc()
        started = time.perf_counter()

        try:
            try:
                result = body(owner)
            except BaseException as exc:
                self._rollback(reason=type(exc).__name__)
                raise

            try:
                self._execute(TransactionStatement.COMMIT.value)
            except EngineError as exc:
                self._rollback(reason=f"commit failed: {exc.message}")
                raise

            self._finish(TransactionState.COMMITTED)
            logger.debug(
                "transaction_committed",
                duration_ms=round((time.perf_counter() - started) * 1000, 3),
            )
            return result
        finally:
            self._state = TransactionState.IDLE
            if self._metrics is not None:
                self._metrics.transactions_active.dec()

    def _rollback(self, reason: str) -> None:
        try:
            self._execute(TransactionStatement.ROLLBACK.value)
        finally:
            self._finish(TransactionState.ROLLED_BACK)
            logger.warning("transaction_rolled_back", reason=reason)

    def _finish(self, outcome: TransactionState) -> None:
        self._last_outcome = outcome
        self._count("committed" if outcome is TransactionState.COMMITTED else "rolled_back")

    def _count(self, status: str) -> None:
        if self._metrics is not None:
            self._metrics.transactions_total.labels(status=status).inc()
