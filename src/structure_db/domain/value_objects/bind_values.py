"""Values that can be bound to a statement parameter.

``BindValue`` is a closed tagged union: every variant carries its
``kind`` tag and knows the representation the engine stores. Binding
never inspects the type of a raw Python value.

Example:
    >>> statement.bind(Text("Alice"), for_="name")
    >>> statement.bind(Integer(42), at=2)
    >>> statement.bind(None, for_="nickname")  # NULL
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

SQLValue = Union[float, int, str, bytes, None]
"""A value in one of the engine's storage classes."""

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


class BindKind(Enum):
    """Tag identifying a ``BindValue`` variant."""

    REAL = "real"
    INTEGER = "integer"
    BIG_INTEGER = "big_integer"
    TEXT = "text"
    BLOB = "blob"
    NULL = "null"


class BindValue(ABC):
    """Base of the bindable value variants."""

    __slots__ = ()

    kind: ClassVar[BindKind]

    @property
    @abstractmethod
    def sql_value(self) -> SQLValue:
        """The value handed to the engine."""
        ...


@dataclass(frozen=True, slots=True)
class Real(BindValue):
    """A double-precision floating point value."""

    value: float
    kind: ClassVar[BindKind] = BindKind.REAL

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise TypeError(f"Real requires a number, got {type(self.value).__name__}")

    @property
    def sql_value(self) -> float:
        return float(self.value)


@dataclass(frozen=True, slots=True)
class Integer(BindValue):
    """A signed 32-bit integer."""

    value: int
    kind: ClassVar[BindKind] = BindKind.INTEGER

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Integer requires an int, got {type(self.value).__name__}")
        if not INT32_MIN <= self.value <= INT32_MAX:
            raise ValueError(f"Integer value {self.value} does not fit in 32 bits")

    @property
    def sql_value(self) -> int:
        return self.value


@dataclass(frozen=True, slots=True)
class BigInteger(BindValue):
    """A signed 64-bit integer."""

    value: int
    kind: ClassVar[BindKind] = BindKind.BIG_INTEGER

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"BigInteger requires an int, got {type(self.value).__name__}")
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise ValueError(f"BigInteger value {self.value} does not fit in 64 bits")

    @property
    def sql_value(self) -> int:
        return self.value


@dataclass(frozen=True, slots=True)
class Text(BindValue):
    """A UTF-8 text value."""

    value: str
    kind: ClassVar[BindKind] = BindKind.TEXT

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError(f"Text requires a str, got {type(self.value).__name__}")

    @property
    def sql_value(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Blob(BindValue):
    """An opaque byte string. The bytes are copied on construction."""

    value: bytes
    kind: ClassVar[BindKind] = BindKind.BLOB

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bytes, bytearray, memoryview)):
            raise TypeError(f"Blob requires bytes, got {type(self.value).__name__}")
        object.__setattr__(self, "value", bytes(self.value))

    @property
    def sql_value(self) -> bytes:
        return self.value


@dataclass(frozen=True, slots=True)
class Null(BindValue):
    """An explicit SQL NULL."""

    kind: ClassVar[BindKind] = BindKind.NULL

    @property
    def sql_value(self) -> None:
        return None


NULL = Null()
