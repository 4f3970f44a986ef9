"""Error taxonomy for structure-db.

Engine failures are translated into these types by the engine adapter at
the point where they occur. Errors raised by caller code inside a
transaction or migration body are never wrapped: the transaction is rolled
back and the original exception propagates unchanged.
"""

from __future__ import annotations

from structure_db.infrastructure.logging import get_logger

logger = get_logger(__name__)

SQLITE_ERROR = 1
"""Primary result code SQLite uses for SQL errors and missing objects."""

SQLITE_MISUSE = 21
"""Result code for library misuse."""


class StructureError(Exception):
    """Base class for every error raised by structure-db."""


class EngineError(StructureError):
    """The relational engine reported a failure.

    Attributes:
        code: The engine's (extended) result code.
        message: The engine's description of the failure.
    """

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message

    @property
    def primary_code(self) -> int:
        """The primary result code, without extended bits."""
        return self.code & 0xFF


class SQLSyntaxError(EngineError):
    """The engine rejected a query while preparing or executing it."""


class NamingError(StructureError):
    """A bind parameter or result column could not be validly named."""


class MigrationOrderError(StructureError):
    """A migration was requested out of sequence."""


class NestedTransactionError(StructureError):
    """``transaction`` was called from inside an active transaction body."""


class UnexpectedRowError(StructureError):
    """``perform`` produced a row but no row callback was supplied."""


class ResourceLifecycleViolation(StructureError, RuntimeError):
    """A closed connection, finalized statement or stale row was used.

    This is a programming defect, not a recoverable condition.
    """


def lifecycle_violation(message: str, **context: object) -> ResourceLifecycleViolation:
    """Log a lifecycle violation at critical level and return it for raising."""
    logger.critical("resource_lifecycle_violation", detail=message, **context)
    return ResourceLifecycleViolation(message)
