"""Typed, transient view over one result row.

A Row reads the values its Statement produced on one step and converts them
the way SQLite's column accessors do:

    ============  ==========  ===============================  =============
    stored        real        integer / big_integer            text / blob
    ============  ==========  ===============================  =============
    NULL          0.0         0                                None
    INTEGER       float(v)    v                                decimal digits
    REAL          v           truncated toward zero            15 digits
    TEXT          numeric     leading integer prefix           as stored
                  prefix
    BLOB          as TEXT     as TEXT                          UTF-8 bytes
    ============  ==========  ===============================  =============

``integer`` wraps the 64-bit value to signed 32 bits. A NULL read through a
numeric accessor cannot be told apart from a stored zero.

A Row is valid until its Statement is stepped, reset or finalized again.
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Iterator, Mapping, Union

from structure_db.domain.errors import lifecycle_violation
from structure_db.domain.value_objects import SQLValue
from structure_db.domain.value_objects.bind_values import INT64_MAX, INT64_MIN

if TYPE_CHECKING:
    from structure_db.application.statement import Statement

ColumnKey = Union[int, str]

_REAL_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_PREFIX = re.compile(r"\s*[+-]?\d+")


def _clamp64(value: int) -> int:
    return max(INT64_MIN, min(INT64_MAX, value))


def _wrap32(value: int) -> int:
    return ((value + (1 << 31)) % (1 << 32)) - (1 << 31)


def _decode(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def to_real(value: SQLValue) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = _decode(value) if isinstance(value, bytes) else value
    match = _REAL_PREFIX.match(text)
    return float(match.group()) if match else 0.0


def to_int64(value: SQLValue) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return 0
        if math.isinf(value):
            return INT64_MAX if value > 0 else INT64_MIN
        return _clamp64(int(value))
    text = _decode(value) if isinstance(value, bytes) else value
    match = _INTEGER_PREFIX.match(text)
    return _clamp64(int(match.group())) if match else 0


def to_text(value: SQLValue) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return _decode(value)
    if isinstance(value, float):
        return _format_real(value)
    return str(value)


def to_blob(value: SQLValue) -> bytes | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value
    text = to_text(value)
    return None if text is None else text.encode("utf-8")


def _format_real(value: float) -> str:
    if math.isinf(value):
        return "Inf" if value > 0 else "-Inf"
    rendered = "%.15g" % value
    mantissa, _, exponent = rendered.partition("e")
    if "." not in mantissa:
        mantissa += ".0"
    return f"{mantissa}e{exponent}" if exponent else mantissa


class Row:
    """Column values of one step, with typed accessors.

    Every accessor takes a 0-based ordinal or a column name. An unknown
    name yields the accessor's default; an ordinal out of range is an
    IndexError.
    """

    __slots__ = ("_statement", "_generation", "_values", "_columns")

    def __init__(
        self,
        statement: Statement,
        generation: int,
        values: tuple[SQLValue, ...],
        columns: Mapping[str, int],
    ) -> None:
        self._statement = statement
        self._generation = generation
        self._values = values
        self._columns = columns

    def _ensure_current(self) -> None:
        if self._statement._generation != self._generation:
            raise lifecycle_violation(
                "Row used after its statement moved on",
                query=self._statement.query,
            )

    def _index(self, key: ColumnKey) -> int | None:
        self._ensure_current()
        if isinstance(key, str):
            return self._columns.get(key)
        if not 0 <= key < len(self._values):
            raise IndexError(f"Column ordinal {key} out of range (row has {len(self._values)})")
        return key

    def _value(self, key: ColumnKey) -> tuple[bool, SQLValue]:
        index = self._index(key)
        if index is None:
            return False, None
        return True, self._values[index]

    def real(self, key: ColumnKey) -> float:
        found, value = self._value(key)
        return to_real(value) if found else 0.0

    def integer(self, key: ColumnKey) -> int:
        """Read a column as a signed 32-bit integer."""
        found, value = self._value(key)
        return _wrap32(to_int64(value)) if found else 0

    def big_integer(self, key: ColumnKey) -> int:
        """Read a column as a signed 64-bit integer."""
        found, value = self._value(key)
        return to_int64(value) if found else 0

    def text(self, key: ColumnKey) -> str | None:
        found, value = self._value(key)
        return to_text(value) if found else None

    def blob(self, key: ColumnKey) -> bytes | None:
        found, value = self._value(key)
        return to_blob(value) if found else None

    def __getitem__(self, key: ColumnKey) -> SQLValue:
        """The stored value, unconverted. Unknown names raise KeyError."""
        index = self._index(key)
        if index is None:
            raise KeyError(key)
        return self._values[index]

    def keys(self) -> list[str]:
        self._ensure_current()
        return sorted(self._columns, key=self._columns.__getitem__)

    def __len__(self) -> int:
        self._ensure_current()
        return len(self._values)

    def __iter__(self) -> Iterator[SQLValue]:
        self._ensure_current()
        return iter(self._values)

    def as_dict(self) -> dict[str, SQLValue]:
        self._ensure_current()
        return {name: self._values[index] for name, index in self._columns.items()}

    def __repr__(self) -> str:
        return f"Row({self._values!r})"
