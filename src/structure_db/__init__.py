"""
structure-db - concurrency-safe access to an embedded SQLite store

Prepared statements with named parameters, typed row decoding, serialized
multi-threaded access to one connection, transactions with automatic
rollback, and sequential schema migrations.
"""

__version__ = "0.1.0"

from structure_db.application import Connection, Row, Statement
from structure_db.domain.errors import (
    EngineError,
    MigrationOrderError,
    NamingError,
    NestedTransactionError,
    ResourceLifecycleViolation,
    SQLSyntaxError,
    StructureError,
    UnexpectedRowError,
)
from structure_db.domain.value_objects import (
    NULL,
    BigInteger,
    BindValue,
    Blob,
    Integer,
    Migration,
    Null,
    Real,
    ScalarFunction,
    Text,
)
from structure_db.ports.outbound import MEMORY_LOCATION

__all__ = [
    "__version__",
    # Connection
    "Connection",
    "Statement",
    "Row",
    "MEMORY_LOCATION",
    # Bind values
    "BindValue",
    "Real",
    "Integer",
    "BigInteger",
    "Text",
    "Blob",
    "Null",
    "NULL",
    # Registration and history
    "ScalarFunction",
    "Migration",
    # Errors
    "StructureError",
    "EngineError",
    "SQLSyntaxError",
    "NamingError",
    "MigrationOrderError",
    "NestedTransactionError",
    "UnexpectedRowError",
    "ResourceLifecycleViolation",
]
