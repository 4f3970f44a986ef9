"""Transaction-related types.

State machine of a connection's transaction controller:

    IDLE ──begin──> ACTIVE ──commit──> COMMITTED ──┐
                       │                            │
                       └──rollback──> ROLLED_BACK ──┴──> IDLE

COMMITTED and ROLLED_BACK are the outcome of the most recent unit of work;
the controller is back in IDLE as soon as the unit returns.
"""

from __future__ import annotations

from enum import Enum, auto


class TransactionState(Enum):
    """Transaction lifecycle states."""

    IDLE = auto()
    """No transaction is open on the connection."""

    ACTIVE = auto()
    """BEGIN was issued and the body is running."""

    COMMITTED = auto()
    """The body completed and COMMIT succeeded."""

    ROLLED_BACK = auto()
    """The body (or the commit) failed and ROLLBACK was issued."""

    def is_terminal(self) -> bool:
        """Check if this is an outcome state (COMMITTED or ROLLED_BACK)."""
        return self in (TransactionState.COMMITTED, TransactionState.ROLLED_BACK)

    def is_active(self) -> bool:
        """Check if a transaction body is currently running."""
        return self == TransactionState.ACTIVE


class TransactionStatement(str, Enum):
    """Engine statements marking transaction boundaries."""

    BEGIN = "BEGIN TRANSACTION"
    COMMIT = "COMMIT TRANSACTION"
    ROLLBACK = "ROLLBACK TRANSACTION"
