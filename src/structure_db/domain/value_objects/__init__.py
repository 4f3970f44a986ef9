"""Value objects for the structure-db domain.

Value objects are immutable types that represent domain concepts.
They have no identity - two value objects with the same attributes are equal.

Exports:
    Bind values:
        - BindValue: Base of the tagged union accepted by ``Statement.bind``
        - Real, Integer, BigInteger, Text, Blob, Null: The variants
        - NULL: Shared ``Null`` instance
        - BindKind: Variant tags

    Transaction types:
        - TransactionState: Controller lifecycle states
        - TransactionStatement: BEGIN/COMMIT/ROLLBACK statements

    Registration and history:
        - ScalarFunction: User-defined SQL function
        - Migration: One step of an ordered schema history
"""

from structure_db.domain.value_objects.bind_values import (
    NULL,
    BigInteger,
    BindKind,
    BindValue,
    Blob,
    Integer,
    Null,
    Real,
    SQLValue,
    Text,
)
from structure_db.domain.value_objects.migration import Migration, validate_version
from structure_db.domain.value_objects.scalar_function import (
    UNICODE_CASE_FUNCTIONS,
    ScalarFunction,
    unicode_lower,
    unicode_upper,
)
from structure_db.domain.value_objects.transaction_types import (
    TransactionState,
    TransactionStatement,
)

__all__ = [
    # Bind values
    "BindValue",
    "BindKind",
    "Real",
    "Integer",
    "BigInteger",
    "Text",
    "Blob",
    "Null",
    "NULL",
    "SQLValue",
    # Transaction types
    "TransactionState",
    "TransactionStatement",
    # Registration and history
    "ScalarFunction",
    "UNICODE_CASE_FUNCTIONS",
    "unicode_upper",
    "unicode_lower",
    "Migration",
    "validate_version",
]
